"""
Pytest configuration and shared fixtures for floorstock tests.

The front-end talks to the sheet endpoint through ``EndpointSession``, a
requests-compatible object that routes calls into the endpoint's Flask test
client, so both halves run in-process against a temporary workbook.
"""
import json
from urllib.parse import urlparse

import pytest
import requests

from floorstock import create_app
from floorstock.endpoint import create_endpoint_app
from floorstock.sheet_client import SheetClient

SHEET_URL = "http://sheet.test/"


class EndpointResponse:
    def __init__(self, response):
        self._response = response
        self.status_code = response.status_code
        self.text = response.get_data(as_text=True)

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class EndpointSession:
    def __init__(self, test_client):
        self.test_client = test_client
        self.calls = []

    def _path(self, url):
        return urlparse(url).path or "/"

    def get(self, url, params=None, timeout=None):
        self.calls.append(("GET", params))
        return EndpointResponse(self.test_client.get(self._path(url), query_string=params or {}))

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append(("POST", json.loads(data)))
        return EndpointResponse(self.test_client.post(self._path(url), data=data, headers=headers or {}))


class BrokenSession:
    def get(self, url, params=None, timeout=None):
        raise requests.ConnectionError("endpoint unreachable")

    def post(self, url, data=None, headers=None, timeout=None):
        raise requests.ConnectionError("endpoint unreachable")


@pytest.fixture
def endpoint_app(tmp_path):
    app = create_endpoint_app({
        "TESTING": True,
        "WORKBOOK_PATH": str(tmp_path / "inventory.xlsx"),
        "UPLOAD_ROOT": str(tmp_path / "uploads"),
    })
    app.extensions["sheet_store"].setup_sheets()
    return app


@pytest.fixture
def store(endpoint_app):
    return endpoint_app.extensions["sheet_store"]


@pytest.fixture
def endpoint_client(endpoint_app):
    return endpoint_app.test_client()


@pytest.fixture
def post_action(endpoint_client):
    def _post(action, **fields):
        response = endpoint_client.post(
            "/", data=json.dumps({"action": action, **fields}), headers={"Content-Type": "text/plain"}
        )
        return response.get_json()
    return _post


@pytest.fixture
def seeded(post_action):
    """Three items: Floor Cleaner is low, Tea Bags and A4 Paper are healthy."""
    post_action("addInventoryItem", name="Floor Cleaner", category="Housekeeping", quantity=3, unit="liters", minLevel=5)
    post_action("addInventoryItem", name="Tea Bags", category="Pantry", quantity=40, unit="pcs", minLevel=10)
    post_action("addInventoryItem", name="A4 Paper", category="Stationery", quantity=12, unit="reams", minLevel=4)
    return post_action


@pytest.fixture
def endpoint_session(endpoint_client):
    return EndpointSession(endpoint_client)


@pytest.fixture
def sheet_client(endpoint_session):
    return SheetClient(lambda: SHEET_URL, timeout=5, folder_id="receipts", session=endpoint_session)


@pytest.fixture
def app(endpoint_session):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret-key",
        "SHEET_API_URL": SHEET_URL,
    }, session_factory=lambda: endpoint_session)
    return app


@pytest.fixture
def client(app):
    """A front-end test client signed in as the staff user."""
    test_client = app.test_client()
    test_client.post("/login", data={"username": "staff", "password": "staff123"})
    return test_client


@pytest.fixture
def anonymous_client(app):
    return app.test_client()
