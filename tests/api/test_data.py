"""Tests for GET /api/data unified read endpoint."""

from decimal import Decimal


def get(client, **params):
    return client.get("/api/data", params=params)


# =============================================================================
# VALIDATION
# =============================================================================


class TestDataValidation:

    def test_type_required(self, client):
        response = get(client)

        assert response.status_code == 400
        assert "'type' query parameter is required" in response.json()["error"]["message"]

    def test_unknown_type(self, client):
        response = get(client, type="customers")

        assert response.status_code == 400
        assert "Valid types: invoice, invoices, rollups, summary" in response.json()["error"]["message"]


# =============================================================================
# INVOICES
# =============================================================================


class TestInvoiceDetail:

    def test_detail_with_derived_fields(self, client, stored):
        response = get(client, type="invoice", id="inv-2")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "partial"
        assert Decimal(data["total"]) == Decimal("300.00")
        assert Decimal(data["amount_paid"]) == Decimal("100.00")
        assert Decimal(data["balance_due"]) == Decimal("200.00")
        assert data["line_items"][0]["description"] == "Website redesign"

    def test_allowed_statuses(self, client, stored):
        data = get(client, type="invoice", id="inv-1").json()["data"]

        # Unpaid sent invoice: paid needs a payment but is still offered
        assert set(data["allowed_statuses"]) >= {"partial", "paid", "overdue", "cancelled"}

    def test_id_required(self, client, stored):
        response = get(client, type="invoice")

        assert response.status_code == 400

    def test_not_found(self, client, stored):
        response = get(client, type="invoice", id="inv-404")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestInvoiceList:

    def test_all(self, client, stored):
        data = get(client, type="invoices").json()["data"]

        assert {i["id"] for i in data} == {"inv-1", "inv-2", "inv-3"}

    def test_by_status(self, client, stored):
        data = get(client, type="invoices", status="overdue").json()["data"]

        assert [i["id"] for i in data] == ["inv-3"]

    def test_by_client_and_status(self, client, stored):
        data = get(client, type="invoices", client_id="client-1", status="partial").json()["data"]

        assert [i["id"] for i in data] == ["inv-2"]

    def test_unknown_status(self, client, stored):
        response = get(client, type="invoices", status="archived")

        assert response.status_code == 400


# =============================================================================
# STATISTICS
# =============================================================================


class TestSummary:

    def test_dashboard(self, client, stored):
        data = get(client, type="summary").json()["data"]

        assert data["total"] == 3
        assert data["overdue_count"] == 1
        assert Decimal(data["paid_amount"]) == Decimal("100.00")
        assert Decimal(data["outstanding_amount"]) == Decimal("1900.00")

    def test_client_summary(self, client, stored):
        data = get(client, type="summary", client_id="client-2").json()["data"]

        assert data["total"] == 1
        assert Decimal(data["outstanding_amount"]) == Decimal("500.00")

    def test_rollups(self, client, stored):
        data = get(client, type="rollups").json()["data"]

        assert set(data) == {"client-1", "client-2"}
        assert data["client-1"]["total_invoices"] == 2
        assert Decimal(data["client-1"]["total_due"]) == Decimal("1400.00")
