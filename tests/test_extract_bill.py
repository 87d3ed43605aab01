"""Supplier bill reading: upload checks, model output validation and audit."""
from jewelshop.ai.groq_client import AIServiceBusy, AIServiceUnavailable, UnreadableResponse
from jewelshop.db.session import SessionLocal
from jewelshop.models.audit_log import AuditLogEntry
from tests.conftest import OWNER_ID

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 1024


def _extract(client, auth, content=PNG, content_type="image/png", filename="bill.png"):
    files = {"image": (filename, content, content_type)} if content is not None else None
    return client.post("/ai/extract-bill", files=files, headers=auth)


def _audit_rows():
    session = SessionLocal()
    try:
        return session.query(AuditLogEntry).filter(AuditLogEntry.action == "bill_extraction").all()
    finally:
        session.close()


# ─── Happy path ───────────────────────────────────────────────────


class TestExtractBill:
    def test_returns_validated_bill(self, client, auth, fake_bill_reader):
        resp = _extract(client, auth)

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert data["supplier"] == {"name": "Kundan Bullion", "gstNumber": "27AAACK1234L1Z9"}
        assert data["invoiceNumber"] == "KB-2231"
        assert data["amount"] == 125000
        assert data["paymentStatus"] == "Unpaid"
        assert data["numberOfItems"] == 1
        assert fake_bill_reader.calls == [{"size": len(PNG), "mime_type": "image/png"}]

    def test_success_is_audited(self, client, auth, fake_bill_reader):
        _extract(client, auth)

        [row] = _audit_rows()
        assert row.user_id == OWNER_ID
        assert row.success is True
        assert row.route == "/ai/extract-bill"
        assert row.details["invoiceNumber"] == "KB-2231"

    def test_pdf_is_accepted(self, client, auth, fake_bill_reader):
        resp = _extract(client, auth, content=b"%PDF-1.4 bill", content_type="application/pdf", filename="b.pdf")
        assert resp.status_code == 200
        assert fake_bill_reader.calls[0]["mime_type"] == "application/pdf"

    def test_nulls_from_the_model_take_defaults(self, client, auth, fake_bill_reader):
        fake_bill_reader.bill = {
            "supplier": {"name": "Rajesh Silver", "email": ""},
            "invoiceNumber": "RS-9",
            "invoiceDate": "2026-04-01",
            "amount": 8400.5,
            "paymentStatus": None,
            "items": None,
            "confidence": None,
        }
        data = _extract(client, auth).json()["data"]
        assert data["paymentStatus"] == "Unpaid"
        assert data["items"] == []
        assert data["confidence"] == 0.8
        assert data["detectedLanguage"] == "unknown"
        assert "numberOfItems" not in data
        assert "email" not in data["supplier"]


# ─── Upload checks ────────────────────────────────────────────────


class TestUploadChecks:
    def test_image_required(self, client, auth, fake_bill_reader):
        resp = _extract(client, auth, content=None)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Image file is required"}

    def test_type_limit(self, client, auth, fake_bill_reader):
        resp = _extract(client, auth, content=b"GIF89a", content_type="image/gif", filename="b.gif")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid file type. Only JPG, PNG, WebP, and PDF are allowed."}
        assert fake_bill_reader.calls == []

    def test_size_limit(self, client, auth, fake_bill_reader):
        resp = _extract(client, auth, content=b"\x00" * (10 * 1024 * 1024 + 1))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Image file too large. Maximum size is 10MB."}
        assert fake_bill_reader.calls == []

    def test_requires_auth(self, client, fake_bill_reader):
        assert _extract(client, {}).status_code == 401


# ─── Unusable model output ────────────────────────────────────────


class TestInvalidBill:
    def test_missing_key_fields_is_not_a_bill(self, client, auth, fake_bill_reader):
        fake_bill_reader.bill = {"supplier": {"name": "Someone"}, "notes": "a photo of a cat"}

        resp = _extract(client, auth)

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "INVALID_BILL_IMAGE"
        assert body["error"].startswith("This image does not appear to be a valid purchase bill")
        paths = [d["path"] for d in body["details"]]
        assert ["invoiceNumber"] in paths
        assert ["amount"] in paths

        [row] = _audit_rows()
        assert row.success is False

    def test_minor_errors_ask_for_a_clearer_image(self, client, auth, fake_bill_reader):
        fake_bill_reader.bill = {**fake_bill_reader.bill, "supplier": {"name": ""}}

        resp = _extract(client, auth)

        assert resp.status_code == 422
        assert resp.json()["error"].startswith("Could not extract all required information")
        assert resp.json()["details"][0]["path"] == ["supplier", "name"]

    def test_bad_date_format_is_not_a_bill(self, client, auth, fake_bill_reader):
        fake_bill_reader.bill = {**fake_bill_reader.bill, "invoiceDate": "10/03/2026"}
        resp = _extract(client, auth)
        assert resp.status_code == 422
        assert resp.json()["error"].startswith("This image does not appear")

    def test_unreadable_reply(self, client, auth, fake_bill_reader):
        fake_bill_reader.error = UnreadableResponse("Failed to extract bill information from image")

        resp = _extract(client, auth)

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to extract bill information from image"}
        assert _audit_rows()[0].success is False


class TestProviderErrors:
    def test_busy(self, client, auth, fake_bill_reader):
        fake_bill_reader.error = AIServiceBusy("slow down")
        assert _extract(client, auth).status_code == 429

    def test_unavailable(self, client, auth, fake_bill_reader):
        fake_bill_reader.error = AIServiceUnavailable("down")
        resp = _extract(client, auth)
        assert resp.status_code == 503
        assert resp.json() == {"error": "Bill reading is temporarily unavailable. Please try again later."}
