"""
Payment domain models.

A Payment is one immutable ledger entry. It is created once, when the
backend accepts a recorded payment, and never edited or removed afterwards.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from utils.money import parse_number
from utils.timezone import today_utc, parse_date, parse_iso


class PaymentMethod(str, Enum):
    """How a payment was made. Closed set; the gateway adapter handles each one."""

    CASH = "cash"
    CHECK = "check"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    OTHER = "other"


# Wire values older records still carry
_METHOD_ALIASES = {
    "direct_transfer": PaymentMethod.BANK_TRANSFER,
    "bank": PaymentMethod.BANK_TRANSFER,
    "card": PaymentMethod.CREDIT_CARD,
}


def parse_payment_method(value: str | None) -> PaymentMethod:
    """
    Map a wire value to PaymentMethod.

    Raises:
        ValueError: If the value is not a known method or alias
    """
    if not value:
        raise ValueError("payment_method is required")
    if value in _METHOD_ALIASES:
        return _METHOD_ALIASES[value]
    try:
        return PaymentMethod(value)
    except ValueError:
        valid = ", ".join(m.value for m in PaymentMethod)
        raise ValueError(f"Unknown payment method '{value}'. Valid methods: {valid}")


class PaymentCreate(BaseModel):
    """
    A payment someone wants to record.

    Amount rules (positive, whole minor units, within balance) are enforced
    by the ledger, not here, so they surface as ledger errors.
    """

    amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.CASH
    reference_number: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=2000)
    payment_date: date = Field(default_factory=today_utc)
    idempotency_key: str | None = Field(None, max_length=255)

    model_config = {"frozen": True}


class Payment(BaseModel):
    """Ledger entry as stored."""

    id: str
    amount: Decimal
    payment_method: PaymentMethod
    reference_number: str | None = None
    notes: str | None = None
    payment_date: date
    gateway_reference: str | None = None
    recorded_at: datetime | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Payment":
        """Build from the backend's payment record."""
        recorded_at = record.get("created_at")
        return cls(
            id=str(record["id"]),
            amount=parse_number(record.get("amount")),
            payment_method=parse_payment_method(record.get("payment_method")),
            reference_number=record.get("reference_number") or None,
            notes=record.get("notes") or None,
            payment_date=parse_date(record.get("payment_date")) or today_utc(),
            gateway_reference=(
                record.get("gateway_reference") or record.get("transaction_id") or None
            ),
            recorded_at=parse_iso(recorded_at) if recorded_at else None,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": str(self.amount),
            "payment_method": self.payment_method.value,
            "reference_number": self.reference_number,
            "notes": self.notes,
            "payment_date": self.payment_date.isoformat(),
            "gateway_reference": self.gateway_reference,
        }


class BillingContext(BaseModel):
    """Who is paying. Passed to the card processor as receipt/billing details."""

    client_id: str | None = None
    name: str | None = Field(None, max_length=200)
    email: str | None = Field(None, max_length=254)


class PaymentIntent(BaseModel):
    """Processor-side charge awaiting confirmation with card details."""

    id: str
    status: str
    amount_minor: int
    currency: str
    client_secret: str | None = None
    last_error: str | None = None  # processor message from the last failed attempt


class PaymentResult(BaseModel):
    """Successful capture, normalized across manual and card methods."""

    amount: Decimal
    payment_method: PaymentMethod
    gateway_reference: str | None = None
    captured_at: datetime

    model_config = {"frozen": True}
