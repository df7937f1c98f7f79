"""
Invoice domain models.

An Invoice is an immutable snapshot. Ledger and status operations return a
new snapshot rather than mutating this one. Totals, amount paid and balance
due are always derived, never stored: subtotal/tax/total from the line
items, amount paid from the payment ledger.
"""

import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field

from core.models.line_item import LineItem
from core.models.payment import Payment
from core.totals import InvoiceTotals, compute_totals
from utils.money import MAX_NUMBER, parse_number, round_money
from utils.timezone import parse_date

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    SENT = "sent"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class Invoice(BaseModel):
    """Invoice snapshot with its line items and payment ledger."""

    id: str
    client_id: str | None = None
    invoice_number: str | None = None
    line_items: tuple[LineItem, ...] = ()
    tax_rate: Decimal = Field(_ZERO, ge=0, le=MAX_NUMBER)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    payments: tuple[Payment, ...] = ()
    issue_date: date | None = None
    due_date: date | None = None
    notes: str | None = Field(None, max_length=2000)

    model_config = {"frozen": True}

    @property
    def totals(self) -> InvoiceTotals:
        # Invoices carry tax only; discounts exist on estimates
        return compute_totals(self.line_items, self.tax_rate)

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return self.totals.subtotal

    @computed_field
    @property
    def tax_amount(self) -> Decimal:
        return self.totals.tax_amount

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.totals.total

    @computed_field
    @property
    def amount_paid(self) -> Decimal:
        """Sum of the payment ledger. The only source of amount paid."""
        return sum((p.amount for p in self.payments), _ZERO)

    @computed_field
    @property
    def balance_due(self) -> Decimal:
        """
        Remaining obligation.

        Floored at zero, and zero for cancelled invoices whatever the ledger
        holds. A remainder smaller than half a minor unit cannot be paid and
        counts as settled.
        """
        if self.status == InvoiceStatus.CANCELLED:
            return _ZERO
        remaining = self.total - self.amount_paid
        if round_money(remaining) <= 0:
            return _ZERO
        return remaining

    @property
    def is_paid(self) -> bool:
        """Whether invoice is labeled fully paid."""
        return self.status == InvoiceStatus.PAID

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Invoice":
        """
        Build from a backend invoice record.

        The record's amount_paid and balance_due are advisory: both are
        re-derived from items[] and payments[], and a disagreement is logged.

        Raises:
            ValueError: If status or a payment method is unknown
        """
        client = record.get("client_id", record.get("client"))
        if isinstance(client, dict):
            client = client.get("id")

        invoice = cls(
            id=str(record["id"]),
            client_id=str(client) if client not in (None, "") else None,
            invoice_number=record.get("invoice_number") or None,
            line_items=tuple(LineItem.from_record(i) for i in record.get("items") or []),
            tax_rate=parse_number(record.get("tax_rate")),
            status=InvoiceStatus(record.get("status") or InvoiceStatus.DRAFT.value),
            payments=tuple(Payment.from_record(p) for p in record.get("payments") or []),
            issue_date=parse_date(record.get("issue_date")),
            due_date=parse_date(record.get("due_date")),
            notes=record.get("notes") or None,
        )

        for field in ("amount_paid", "balance_due"):
            advisory = record.get(field)
            if advisory is None:
                continue
            derived = getattr(invoice, field)
            if round_money(parse_number(advisory)) != round_money(derived):
                logger.warning(
                    f"Invoice {invoice.id}: backend {field}={advisory} disagrees with "
                    f"ledger-derived {derived}; using ledger value"
                )

        return invoice

    def to_record(self) -> dict[str, Any]:
        """Wire shape for the backend, with derived fields included."""
        return {
            "id": self.id,
            "client": self.client_id,
            "invoice_number": self.invoice_number,
            "status": self.status.value,
            "tax_rate": str(self.tax_rate),
            "subtotal": str(self.subtotal),
            "tax_amount": str(self.tax_amount),
            "total": str(self.total),
            "amount_paid": str(self.amount_paid),
            "balance_due": str(self.balance_due),
            "items": [item.to_record() for item in self.line_items],
            "payments": [payment.to_record() for payment in self.payments],
            "issue_date": self.issue_date.isoformat() if self.issue_date else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "notes": self.notes,
        }
