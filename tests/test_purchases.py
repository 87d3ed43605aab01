"""Suppliers and purchase invoices."""
import re

from jewelshop.services.storage_service import PURCHASE_INVOICES_BUCKET
from tests.conftest import OWNER_ID, OTHER_ID

BILL = {"invoice_number": "SUP-7781", "invoice_date": "2026-03-10", "amount": 125000, "number_of_items": 4}


def _supplier(client, auth, name="Kundan Bullion"):
    resp = client.post("/purchases/suppliers", json={"name": name, "email": "sales@kundan.example"}, headers=auth)
    assert resp.status_code == 201, resp.json()
    return resp.json()["data"]


class TestSuppliers:
    def test_create_and_list(self, client, auth):
        _supplier(client, auth)
        _supplier(client, auth, name="Rajesh Silver")

        body = client.get("/purchases/suppliers?search=silver", headers=auth).json()
        assert [s["name"] for s in body["data"]] == ["Rajesh Silver"]
        assert body["meta"] == {"total": 1}

    def test_name_required(self, client, auth):
        resp = client.post("/purchases/suppliers", json={"email": "a@b.co"}, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Supplier name is required"}

    def test_invalid_email(self, client, auth):
        resp = client.post("/purchases/suppliers", json={"name": "X", "email": "bad@"}, headers=auth)
        assert resp.json() == {"error": "Invalid email format"}

    def test_update(self, client, auth):
        supplier = _supplier(client, auth)
        resp = client.put(f"/purchases/suppliers/{supplier['id']}", json={"phone": "9822000000"}, headers=auth)
        assert resp.json()["data"]["phone"] == "9822000000"
        assert resp.json()["data"]["name"] == "Kundan Bullion"

    def test_delete_refused_while_referenced(self, client, auth):
        supplier = _supplier(client, auth)
        client.post("/purchases/invoices", json={**BILL, "supplier_id": supplier["id"]}, headers=auth)

        resp = client.delete(f"/purchases/suppliers/{supplier['id']}", headers=auth)
        assert resp.status_code == 409
        assert "referenced in 1 purchase invoice(s)" in resp.json()["error"]

    def test_delete_unreferenced(self, client, auth):
        supplier = _supplier(client, auth)
        assert client.delete(f"/purchases/suppliers/{supplier['id']}", headers=auth).status_code == 200
        assert client.get(f"/purchases/suppliers/{supplier['id']}", headers=auth).status_code == 404

    def test_foreign_supplier_is_not_found(self, client, auth, other_auth):
        supplier = _supplier(client, auth)
        resp = client.get(f"/purchases/suppliers/{supplier['id']}", headers=other_auth)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Supplier not found"}


class TestPurchaseInvoices:
    def test_create_with_defaults(self, client, auth):
        supplier = _supplier(client, auth)
        resp = client.post("/purchases/invoices", json={**BILL, "supplier_id": supplier["id"]}, headers=auth)

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert re.fullmatch(r"P-\d{6}", data["purchase_number"])
        assert data["status"] == "Received"
        assert data["payment_status"] == "Unpaid"
        assert data["amount"] == 125000
        assert data["supplier"] == {"name": "Kundan Bullion"}

    def test_required_fields(self, client, auth):
        cases = [
            ({"invoice_date": "2026-03-10", "amount": 1}, "Invoice number is required"),
            ({"invoice_number": "A", "amount": 1}, "Invoice date is required"),
            ({"invoice_number": "A", "invoice_date": "2026-03-10"}, "Amount is required"),
            ({**BILL, "amount": "lots"}, "Invalid amount value"),
            ({**BILL, "amount": -5}, "Invalid amount value"),
            ({**BILL, "number_of_items": -1}, "Invalid number of items"),
        ]
        for body, message in cases:
            resp = client.post("/purchases/invoices", json=body, headers=auth)
            assert resp.status_code == 400, body
            assert resp.json() == {"error": message}

    def test_foreign_supplier_is_rejected(self, client, auth, other_auth):
        foreign = _supplier(client, other_auth)
        resp = client.post("/purchases/invoices", json={**BILL, "supplier_id": foreign["id"]}, headers=auth)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Supplier not found"}

    def test_filters(self, client, auth):
        client.post("/purchases/invoices", json=BILL, headers=auth)
        client.post(
            "/purchases/invoices",
            json={**BILL, "invoice_number": "SUP-9000", "payment_status": "Paid"},
            headers=auth,
        )

        assert len(client.get("/purchases/invoices", headers=auth).json()["data"]) == 2
        paid = client.get("/purchases/invoices?payment_status=Paid", headers=auth).json()["data"]
        assert [p["invoice_number"] for p in paid] == ["SUP-9000"]
        found = client.get("/purchases/invoices?search=7781", headers=auth).json()["data"]
        assert [p["invoice_number"] for p in found] == ["SUP-7781"]
        assert client.get("/purchases/invoices?status=Pending", headers=auth).json()["data"] == []

    def test_replacing_bill_scan_removes_old_file(self, client, auth, fake_store):
        old = f"{OWNER_ID}/bill-1.pdf"
        bill = client.post("/purchases/invoices", json={**BILL, "invoice_file_url": old}, headers=auth).json()["data"]

        resp = client.put(
            f"/purchases/invoices/{bill['id']}",
            json={"invoice_file_url": f"{OWNER_ID}/bill-2.pdf", "payment_status": "Paid"},
            headers=auth,
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["payment_status"] == "Paid"
        assert ("remove", PURCHASE_INVOICES_BUCKET, [old]) in fake_store.calls

    def test_delete_removes_file(self, client, auth, fake_store):
        path = f"{OWNER_ID}/bill-1.pdf"
        bill = client.post("/purchases/invoices", json={**BILL, "invoice_file_url": path}, headers=auth).json()["data"]

        assert client.delete(f"/purchases/invoices/{bill['id']}", headers=auth).status_code == 200
        assert ("remove", PURCHASE_INVOICES_BUCKET, [path]) in fake_store.calls
        assert client.get(f"/purchases/invoices/{bill['id']}", headers=auth).status_code == 404

    def test_foreign_bill_scan_is_rejected(self, client, auth, local_store):
        victim = f"{OTHER_ID}/bill.pdf"
        local_store.upload(PURCHASE_INVOICES_BUCKET, victim, b"%PDF-1.4", "application/pdf")

        resp = client.post("/purchases/invoices", json={**BILL, "invoice_file_url": victim}, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid storage path"}

        bill = client.post("/purchases/invoices", json=BILL, headers=auth).json()["data"]
        resp = client.put(f"/purchases/invoices/{bill['id']}", json={"invoice_file_url": victim}, headers=auth)
        assert resp.status_code == 400
        assert (local_store.root / PURCHASE_INVOICES_BUCKET / victim).is_file()
