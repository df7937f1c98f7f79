"""Tests for POST /api/actions unified mutation endpoint."""

from decimal import Decimal

import pytest

from clients.card_processor_client import CardProcessorError


def act(client, domain, action, data, **kwargs):
    return client.post("/api/actions", json={"domain": domain, "action": action, "data": data}, **kwargs)


# =============================================================================
# ROUTING & VALIDATION
# =============================================================================


class TestActionsRouting:

    def test_unknown_domain(self, client):
        response = act(client, "customer", "create", {})

        assert response.status_code == 400
        assert "Valid domains: invoice, totals" in response.json()["error"]["message"]

    def test_action_not_allowed(self, client):
        response = act(client, "invoice", "delete", {"id": "inv-1"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_malformed_body(self, client):
        response = client.post("/api/actions", json={"domain": "invoice"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_request_id_echoed(self, client, stored):
        response = act(
            client, "invoice", "record_payment",
            {"id": "inv-1", "payment": {"amount": "100.00", "payment_method": "cash"}},
            headers={"X-Request-ID": "trace-42"},
        )

        assert response.json()["meta"]["request_id"] == "trace-42"


# =============================================================================
# RECORD PAYMENT
# =============================================================================


class TestRecordPayment:

    def test_partial_payment(self, client, stored):
        response = act(client, "invoice", "record_payment", {
            "id": "inv-1",
            "payment": {"amount": "500.00", "payment_method": "check", "reference_number": "CHK-77"},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "partial"
        assert Decimal(body["data"]["balance_due"]) == Decimal("700.00")
        assert body["data"]["payments"][0]["reference_number"] == "CHK-77"
        assert "paid" in body["data"]["allowed_statuses"]

    def test_method_alias_accepted(self, client, stored):
        response = act(client, "invoice", "record_payment", {
            "id": "inv-1", "payment": {"amount": "1200.00", "payment_method": "direct_transfer"},
        })

        assert response.json()["data"]["payments"][0]["payment_method"] == "bank_transfer"
        assert response.json()["data"]["status"] == "paid"

    def test_overpayment(self, client, stored):
        response = act(client, "invoice", "record_payment", {
            "id": "inv-1", "payment": {"amount": "5000.00", "payment_method": "cash"},
        })

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "OVERPAYMENT"
        assert error["details"] == {"amount": "5000.00", "outstanding": "1200.00"}

    def test_zero_amount(self, client, stored):
        response = act(client, "invoice", "record_payment", {
            "id": "inv-1", "payment": {"amount": "0", "payment_method": "cash"},
        })

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_unknown_method(self, client, stored):
        response = act(client, "invoice", "record_payment", {
            "id": "inv-1", "payment": {"amount": "10.00", "payment_method": "barter"},
        })

        assert response.status_code == 400
        assert "Unknown payment method" in response.json()["error"]["message"]

    def test_missing_invoice(self, client, stored):
        response = act(client, "invoice", "record_payment", {
            "id": "inv-404", "payment": {"amount": "10.00", "payment_method": "cash"},
        })

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_missing_payment(self, client, stored):
        response = act(client, "invoice", "record_payment", {"id": "inv-1"})

        assert response.status_code == 400

    def test_card_payment_with_token(self, client, stored, processor):
        response = act(client, "invoice", "record_payment", {
            "id": "inv-1",
            "payment": {"amount": "1200.00", "payment_method": "credit_card", "card_token": "pm_card_visa"},
            "billing": {"name": "Ada Lovelace", "email": "ada@example.com"},
        })

        assert response.status_code == 200
        assert response.json()["data"]["payments"][0]["gateway_reference"] == "pi_900"
        processor.confirm_payment_intent.assert_called_once_with("pi_900", "pm_card_visa")
        assert processor.create_payment_intent.call_args.kwargs["receipt_email"] == "ada@example.com"

    def test_card_payment_without_token(self, client, stored, processor):
        response = act(client, "invoice", "record_payment", {
            "id": "inv-1", "payment": {"amount": "100.00", "payment_method": "credit_card"},
        })

        assert response.status_code == 400
        assert "card details" in response.json()["error"]["message"]
        processor.create_payment_intent.assert_not_called()

    def test_backend_failure(self, client, stored):
        stored.fail_record_payment = True

        response = act(client, "invoice", "record_payment", {
            "id": "inv-1", "payment": {"amount": "100.00", "payment_method": "cash"},
        })

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "BACKEND_UNAVAILABLE"


# =============================================================================
# CHANGE STATUS
# =============================================================================


class TestChangeStatus:

    def test_relabel(self, client, stored):
        response = act(client, "invoice", "change_status", {"id": "inv-1", "status": "overdue"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "overdue"
        assert stored.records["inv-1"]["status"] == "overdue"

    def test_bare_paid_rejected(self, client, stored):
        response = act(client, "invoice", "change_status", {"id": "inv-1", "status": "paid"})

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "INVALID_STATUS_TRANSITION"
        assert error["details"] == {"current_status": "sent", "target_status": "paid"}
        assert stored.records["inv-1"]["status"] == "sent"

    def test_paid_with_payment(self, client, stored):
        response = act(client, "invoice", "change_status", {
            "id": "inv-2", "status": "paid", "payment": {"amount": "200.00", "payment_method": "cash"},
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "paid"
        assert Decimal(data["balance_due"]) == 0
        assert len(data["payments"]) == 2

    def test_declined_card(self, client, stored, processor):
        processor.confirm_payment_intent.side_effect = CardProcessorError(
            "Your card was declined.", code="card_declined", decline_code="generic_decline",
        )

        response = act(client, "invoice", "change_status", {
            "id": "inv-1",
            "status": "paid",
            "payment": {"amount": "1200.00", "payment_method": "credit_card", "card_token": "pm_card_visa"},
        })

        assert response.status_code == 402
        error = response.json()["error"]
        assert error["code"] == "PAYMENT_FAILED"
        assert error["message"] == "Your card was declined."
        assert error["details"] == {"processor_code": "card_declined", "decline_code": "generic_decline"}
        assert stored.records["inv-1"]["status"] == "sent"
        assert stored.records["inv-1"]["payments"] == []

    def test_unknown_status(self, client, stored):
        response = act(client, "invoice", "change_status", {"id": "inv-1", "status": "archived"})

        assert response.status_code == 400

    def test_missing_status(self, client, stored):
        response = act(client, "invoice", "change_status", {"id": "inv-1"})

        assert response.status_code == 400
        assert "'status' is required" in response.json()["error"]["message"]


# =============================================================================
# TOTALS
# =============================================================================


class TestComputeTotals:

    def test_live_totals(self, client):
        response = act(client, "totals", "compute", {
            "items": [
                {"description": "Design", "quantity": "2", "unit_price": "150.00"},
                {"description": "Hosting", "quantity": "", "unit_price": "abc"},
            ],
            "tax_rate": "8.25",
            "discount_rate": "10",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert Decimal(data["subtotal"]) == Decimal("300.00")
        assert Decimal(data["discount_amount"]) == Decimal("30.00")
        assert Decimal(data["tax_amount"]) == Decimal("24.75")
        assert Decimal(data["total"]) == Decimal("294.75")

    @pytest.mark.parametrize("items", [[], None])
    def test_empty_form(self, client, items):
        response = act(client, "totals", "compute", {"items": items})

        assert Decimal(response.json()["data"]["total"]) == 0

    def test_absurdly_large_input_counts_as_zero(self, client):
        response = act(client, "totals", "compute", {
            "items": [
                {"description": "Design", "quantity": "1e999999", "unit_price": "150.00"},
                {"description": "Hosting", "quantity": "1", "unit_price": "20.00"},
            ],
            "tax_rate": "1e30",
        })

        assert response.status_code == 200
        assert Decimal(response.json()["data"]["total"]) == Decimal("20.00")
