"""HTTP client for the spreadsheet endpoint.

Reads fall back to the last snapshot that loaded cleanly from the same
endpoint URL; writes report success as a bool. Nothing here retries.
"""
from __future__ import annotations

import base64
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import requests

from .exceptions import SheetRequestError
from .models import InventoryItem, Transaction
from .workbook import INVENTORY, TRANSACTIONS

logger = logging.getLogger(__name__)

PLAIN_TEXT = {"Content-Type": "text/plain"}


@dataclass
class UploadResult:
    success: bool
    file_url: Optional[str] = None


class SheetClient:
    def __init__(self, url_provider: Callable[[], str], timeout: float = 10, folder_id: str = "", session=None):
        self._url_provider = url_provider
        self.timeout = timeout
        self.folder_id = folder_id
        self.session = session or requests.Session()
        self._snapshots: Dict[Tuple[str, str], list] = {}

    @property
    def url(self) -> str:
        return self._url_provider()

    def _decode(self, response):
        try:
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            raise SheetRequestError(f"Bad response from sheet endpoint: {exc}") from exc

    def _get_sheet(self, url: str, sheet: str) -> list:
        try:
            response = self.session.get(url, params={"sheet": sheet}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise SheetRequestError(str(exc)) from exc
        data = self._decode(response)
        if isinstance(data, dict):
            raise SheetRequestError(data.get("error") or "Unexpected payload")
        if not isinstance(data, list):
            raise SheetRequestError("Unexpected payload")
        return [row for row in data if isinstance(row, dict)]

    def _post(self, payload: dict) -> dict:
        try:
            response = self.session.post(
                self.url, data=json.dumps(payload), headers=PLAIN_TEXT, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise SheetRequestError(str(exc)) from exc
        data = self._decode(response)
        if not isinstance(data, dict):
            raise SheetRequestError("Unexpected payload")
        return data

    def _fetch(self, sheet: str, parse) -> list:
        url = self.url
        key = (url, sheet)
        try:
            rows = self._get_sheet(url, sheet)
            parsed = [parse(row, index + 1) for index, row in enumerate(rows)]
        except SheetRequestError as exc:
            logger.error("Failed to fetch %s: %s", sheet, exc)
            return list(self._snapshots.get(key, []))
        self._snapshots[key] = parsed
        return list(parsed)

    def fetch_inventory(self) -> List[InventoryItem]:
        return self._fetch(INVENTORY, InventoryItem.from_row)

    def fetch_transactions(self) -> List[Transaction]:
        return self._fetch(TRANSACTIONS, Transaction.from_row)

    def _action(self, action: str, **fields) -> Optional[dict]:
        try:
            result = self._post({"action": action, **fields})
        except SheetRequestError as exc:
            logger.error("%s failed: %s", action, exc)
            return None
        if result.get("status") != "success":
            logger.error("%s rejected: %s", action, result.get("message"))
            return None
        return result

    def submit_transaction(self, kind, item_name, quantity, unit="", location="", person_name="", notes="",
                           category=None, min_level=None) -> bool:
        fields = dict(
            type=getattr(kind, "value", kind),
            itemName=item_name,
            quantity=quantity,
            unit=unit,
            location=location,
            personName=person_name,
            notes=notes,
        )
        if category:
            fields["category"] = getattr(category, "value", category)
        if min_level is not None:
            fields["minLevel"] = min_level
        return self._action("addTransaction", **fields) is not None

    def update_inventory_quantity(self, item_name, new_quantity) -> bool:
        return self._action("updateInventory", itemName=item_name, newQuantity=new_quantity) is not None

    def add_inventory_item(self, name, category, quantity, unit, min_level) -> bool:
        return self._action(
            "addInventoryItem",
            name=name,
            category=getattr(category, "value", category),
            quantity=quantity,
            unit=unit,
            minLevel=min_level,
        ) is not None

    def delete_inventory_item(self, item_name) -> bool:
        return self._action("deleteInventoryItem", itemName=item_name) is not None

    def upload_file(self, stream, filename, mimetype, item_name) -> UploadResult:
        encoded = base64.b64encode(stream.read()).decode("ascii")
        result = self._action(
            "uploadFile",
            fileName=f"{item_name}_{int(time.time() * 1000)}_{filename}",
            mimeType=mimetype or "application/octet-stream",
            fileData=encoded,
            folderId=self.folder_id,
        )
        if result is None or not result.get("fileUrl"):
            return UploadResult(False)
        return UploadResult(True, result["fileUrl"])
