"""
Domain events for invoice billing.

Immutable event objects describing ledger and status changes. The invoice
service publishes them after the backend has accepted the change; handlers
(notifications, receipts, dashboards) react without the service knowing
who is listening.

Event Categories:
- PaymentRecorded: a ledger entry was appended
- InvoiceStatusChanged: the status label moved
- InvoicePaid: the balance reached zero

Events carry the resulting invoice snapshot so handlers don't re-fetch.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class BillingEvent:
    """Base class for all billing domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


@dataclass(frozen=True)
class InvoiceEvent(BillingEvent):
    """Events related to an invoice's ledger or status."""
    invoice: Any = None  # Invoice; Any avoids a circular import


@dataclass(frozen=True)
class PaymentRecorded(InvoiceEvent):
    """A payment was appended to the invoice's ledger."""
    payment: Any = None

    @classmethod
    def create(cls, invoice: Any, payment: Any) -> "PaymentRecorded":
        return cls(invoice=invoice, payment=payment)


@dataclass(frozen=True)
class InvoiceStatusChanged(InvoiceEvent):
    """Invoice status moved from previous_status to invoice.status."""
    previous_status: str | None = None

    @classmethod
    def create(cls, invoice: Any, previous_status: str) -> "InvoiceStatusChanged":
        return cls(invoice=invoice, previous_status=previous_status)


@dataclass(frozen=True)
class InvoicePaid(InvoiceEvent):
    """Invoice was fully paid."""

    @classmethod
    def create(cls, invoice: Any) -> "InvoicePaid":
        return cls(invoice=invoice)
