import io

from floorstock.workbook import INVENTORY, TRANSACTIONS


def _inventory(store):
    return {row["name"]: row for row in store.read_rows(INVENTORY)}


class TestAuth:
    def test_pages_require_login(self, anonymous_client):
        response = anonymous_client.get("/inventory")
        assert response.status_code == 302
        assert "/login" in response.headers["Location"]

    def test_bad_password(self, anonymous_client):
        response = anonymous_client.post("/login", data={"username": "admin", "password": "nope"},
                                         follow_redirects=True)
        assert b"Invalid username or password" in response.data

    def test_username_is_case_insensitive(self, anonymous_client):
        response = anonymous_client.post("/login", data={"username": " Admin ", "password": "admin123 "})
        assert response.status_code == 302
        assert anonymous_client.get("/").status_code == 200

    def test_logout(self, client):
        client.get("/logout")
        assert client.get("/").status_code == 302


class TestDashboard:
    def test_counts_and_low_stock(self, client, seeded):
        page = client.get("/").get_data(as_text=True)
        assert "Low Stock Alert" in page
        assert "Floor Cleaner: 3 liters (Min: 5)" in page
        assert "staff (Staff)" in page

    def test_empty_store(self, client):
        page = client.get("/").get_data(as_text=True)
        assert "No recent activity" in page


class TestIssueReceive:
    def test_issue_reduces_stock(self, client, seeded, store):
        response = client.post("/issue", data={
            "item_name": "Tea Bags", "quantity": "5", "location": "2nd Floor", "person_name": "Meena",
        }, follow_redirects=True)
        assert b"Transaction recorded successfully!" in response.data
        assert _inventory(store)["Tea Bags"]["quantity"] == 35

        [logged] = store.read_rows(TRANSACTIONS)
        assert logged["unit"] == "pcs"
        assert logged["location"] == "2nd Floor"

    def test_issue_rejects_insufficient_stock(self, client, seeded, store):
        response = client.post("/issue", data={
            "item_name": "Floor Cleaner", "quantity": "4", "person_name": "Meena",
        }, follow_redirects=True)
        assert b"Insufficient stock! Only 3 liters available." in response.data
        assert store.read_rows(TRANSACTIONS) == []

    def test_issue_rejects_unknown_item(self, client, seeded):
        response = client.post("/issue", data={"item_name": "Ghost", "quantity": "1", "person_name": "M"},
                               follow_redirects=True)
        assert b"Please select a valid item." in response.data

    def test_rejects_bad_quantity(self, client, seeded):
        response = client.post("/receive", data={"item_name": "Tea Bags", "quantity": "0", "person_name": "V"},
                               follow_redirects=True)
        assert b"Quantity must be a number greater than 0." in response.data

    def test_rejects_infinite_quantity(self, client, seeded, store):
        response = client.post("/receive", data={"item_name": "Tea Bags", "quantity": "inf", "person_name": "V"},
                               follow_redirects=True)
        assert b"Quantity must be a number greater than 0." in response.data
        assert _inventory(store)["Tea Bags"]["quantity"] == 40

    def test_requires_person(self, client, seeded):
        response = client.post("/receive", data={"item_name": "Tea Bags", "quantity": "2"}, follow_redirects=True)
        assert b"Item and person name are required." in response.data

    def test_receive_new_item_with_attachment(self, client, seeded, store):
        response = client.post("/receive", data={
            "item_name": "Coffee", "quantity": "2", "unit": "kg", "person_name": "Vendor",
            "location": "Store Room", "category": "Pantry", "min_level": "1", "notes": "Invoice 7",
            "attachment": (io.BytesIO(b"%PDF-1.4"), "invoice.pdf"),
        }, content_type="multipart/form-data", follow_redirects=True)
        assert b"Transaction recorded successfully!" in response.data

        coffee = _inventory(store)["Coffee"]
        assert (coffee["category"], coffee["quantity"], coffee["minlevel"]) == ("Pantry", 2, 1)
        notes = store.read_rows(TRANSACTIONS)[0]["notes"]
        assert notes.startswith("Invoice 7 [File: http://")

    def test_form_prefills_unit(self, client, seeded):
        page = client.get("/issue?item=a4%20paper").get_data(as_text=True)
        assert 'value="reams"' in page


class TestInventory:
    def test_filters(self, client, seeded):
        page = client.get("/inventory?category=Pantry").get_data(as_text=True)
        assert "Tea Bags" in page
        assert "Floor Cleaner" not in page

        page = client.get("/inventory?q=paper").get_data(as_text=True)
        assert "A4 Paper" in page
        assert "Tea Bags" not in page

    def test_item_detail(self, client, seeded):
        page = client.get("/inventory/item/Floor%20Cleaner").get_data(as_text=True)
        assert "Stock below minimum. Please reorder." in page

    def test_missing_item_detail(self, client, seeded):
        response = client.get("/inventory/item/Ghost", follow_redirects=True)
        assert b"Product not found." in response.data

    def test_update_quantity(self, client, seeded, store):
        response = client.post("/inventory/update", data={"name": "Tea Bags", "quantity": "7"},
                               follow_redirects=True)
        assert b"Quantity updated." in response.data
        assert _inventory(store)["Tea Bags"]["quantity"] == 7

    def test_update_quantity_rejects_negative(self, client, seeded, store):
        response = client.post("/inventory/update", data={"name": "Tea Bags", "quantity": "-1"},
                               follow_redirects=True)
        assert b"Quantity must be a number (0 or more)." in response.data
        assert _inventory(store)["Tea Bags"]["quantity"] == 40

    def test_update_quantity_accepts_fraction(self, client, seeded, store):
        response = client.post("/inventory/update", data={"name": "Tea Bags", "quantity": "2.5"},
                               follow_redirects=True)
        assert b"Quantity updated." in response.data
        assert _inventory(store)["Tea Bags"]["quantity"] == 2.5

    def test_update_quantity_rejects_infinity(self, client, seeded, store):
        response = client.post("/inventory/update", data={"name": "Tea Bags", "quantity": "inf"},
                               follow_redirects=True)
        assert b"Quantity must be a number (0 or more)." in response.data
        assert _inventory(store)["Tea Bags"]["quantity"] == 40

    def test_add_and_delete(self, client, seeded, store):
        client.post("/inventory/add", data={"name": "Stapler", "category": "Stationery", "quantity": "2",
                                            "unit": "pcs", "min_level": "1"})
        assert _inventory(store)["Stapler"]["category"] == "Stationery"

        response = client.post("/inventory/add", data={"name": "stapler"}, follow_redirects=True)
        assert b"That item already exists." in response.data

        client.post("/inventory/delete", data={"name": "Stapler"})
        assert "Stapler" not in _inventory(store)

    def test_export(self, client, seeded):
        response = client.get("/inventory/export?category=Housekeeping")
        assert response.mimetype == "text/csv"
        assert "attachment; filename=inventory_" in response.headers["Content-Disposition"]
        lines = response.get_data(as_text=True).splitlines()
        assert lines == [
            "ID,Item Name,Category,Quantity,Unit,Min Level,Status",
            "1,Floor Cleaner,Housekeeping,3,liters,5,Low Stock",
        ]


class TestReports:
    def _log(self, client):
        client.post("/issue", data={"item_name": "Tea Bags", "quantity": "1", "person_name": "A"})
        client.post("/receive", data={"item_name": "A4 Paper", "quantity": "2", "person_name": "B"})

    def test_filter_by_type(self, client, seeded):
        self._log(client)
        page = client.get("/reports?type=RECEIVE").get_data(as_text=True)
        assert "A4 Paper" in page
        assert "Tea Bags" not in page

    def test_bad_date(self, client, seeded):
        response = client.get("/reports?start=yesterday")
        assert b"Dates must look like YYYY-MM-DD." in response.data

    def test_exports(self, client, seeded):
        self._log(client)
        csv_body = client.get("/reports/export.csv").get_data(as_text=True).splitlines()
        assert csv_body[0] == "Date,Type,Item Name,Quantity,Unit,Location,Person,Notes"
        assert len(csv_body) == 3

        pdf = client.get("/reports/export.pdf?type=ISSUE")
        assert pdf.mimetype == "application/pdf"
        assert pdf.data.startswith(b"%PDF")


class TestSettings:
    def test_override_and_reset(self, client, endpoint_session):
        response = client.post("/settings", data={"sheet_api_url": "http://other.test/exec"},
                               follow_redirects=True)
        assert b"Endpoint saved." in response.data
        assert b"http://other.test/exec" in response.data

        client.post("/settings", data={"reset": "1"})
        page = client.get("/settings").get_data(as_text=True)
        assert 'value="http://sheet.test/"' in page

    def test_rejects_non_http(self, client):
        response = client.post("/settings", data={"sheet_api_url": "ftp://x"}, follow_redirects=True)
        assert b"must start with http" in response.data
