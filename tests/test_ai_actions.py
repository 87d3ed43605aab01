"""Proposing actions (POST /ai/actions) and reading them back."""
from tests.conftest import auth_for

PROPOSAL = {
    "action_type": "create_invoice",
    "extracted_data": {
        "customerName": "Meera Joshi",
        "items": [{"name": "Silver anklet", "quantity": 2, "weight": 25, "pricePerGram": 90, "total": 2250}],
    },
}


class TestProposeAction:
    def test_proposal_is_stored_awaiting_confirmation(self, client, auth):
        resp = client.post("/ai/actions", json=PROPOSAL, headers=auth)

        assert resp.status_code == 201
        action = resp.json()["data"]
        assert action["status"] == "awaiting_confirmation"
        assert action["action_type"] == "create_invoice"
        assert action["extracted_data"]["subtotal"] == 2250
        assert action["extracted_data"]["gstAmount"] == 67.5
        assert action["extracted_data"]["grandTotal"] == 2317.5

    def test_low_price_produces_warning(self, client, auth):
        body = client.post("/ai/actions", json=PROPOSAL, headers=auth).json()
        assert len(body["warnings"]) == 1
        warning = body["warnings"][0]
        assert warning["severity"] == "warning"
        assert warning["field"] == "items[0].pricePerGram"

    def test_invalid_payload_is_rejected(self, client, auth):
        bad = {"action_type": "create_invoice", "extracted_data": {"customerName": "", "items": []}}
        resp = client.post("/ai/actions", json=bad, headers=auth)
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_unknown_type_is_rejected(self, client, auth):
        resp = client.post("/ai/actions", json={"action_type": "melt_gold", "extracted_data": {}}, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Unknown action type: melt_gold"}

    def test_action_type_required(self, client, auth):
        resp = client.post("/ai/actions", json={"extracted_data": {}}, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Action type is required"}

    def test_foreign_customer_is_rejected(self, client, auth, other_auth):
        foreign = client.post("/customers", json={"name": "Someone else"}, headers=other_auth).json()["data"]
        proposal = {**PROPOSAL, "extracted_data": {**PROPOSAL["extracted_data"], "customerId": foreign["id"]}}
        resp = client.post("/ai/actions", json=proposal, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "customerId: Customer not found"}


class TestReadActions:
    def test_list_is_owner_scoped(self, client, auth):
        client.post("/ai/actions", json=PROPOSAL, headers=auth)
        client.post("/ai/actions", json=PROPOSAL, headers=auth_for("someone-else"))

        actions = client.get("/ai/actions", headers=auth).json()["data"]
        assert len(actions) == 1

    def test_filter_by_status(self, client, auth):
        client.post("/ai/actions", json=PROPOSAL, headers=auth)
        assert client.get("/ai/actions?status=completed", headers=auth).json()["data"] == []
        assert len(client.get("/ai/actions?status=awaiting_confirmation", headers=auth).json()["data"]) == 1

    def test_get_one(self, client, auth, other_auth):
        action_id = client.post("/ai/actions", json=PROPOSAL, headers=auth).json()["data"]["id"]
        assert client.get(f"/ai/actions/{action_id}", headers=auth).json()["data"]["id"] == action_id
        resp = client.get(f"/ai/actions/{action_id}", headers=other_auth)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Action not found"}

    def test_proposal_then_confirmation(self, client, auth, firm_settings):
        action_id = client.post("/ai/actions", json=PROPOSAL, headers=auth).json()["data"]["id"]
        body = client.post("/ai/execute-action", json={"actionId": action_id}, headers=auth).json()
        assert body["success"] is True
        assert body["message"] == "Invoice INV-0001 created successfully! Total: ₹2,317.50"
        assert client.get(f"/ai/actions/{action_id}", headers=auth).json()["data"]["status"] == "completed"
