"""Read-model shapes for dashboards and per-client statistics."""

from decimal import Decimal

from pydantic import BaseModel


class InvoiceSummary(BaseModel):
    """Counts and amounts over a set of invoices."""

    total: int
    paid_count: int
    overdue_count: int
    total_amount: Decimal
    paid_amount: Decimal
    outstanding_amount: Decimal


class ClientRollup(BaseModel):
    """Per-client totals for the client list."""

    client_id: str
    total_invoices: int
    total_revenue: Decimal
    total_paid: Decimal
    total_due: Decimal
