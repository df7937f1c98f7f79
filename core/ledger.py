"""
Payment ledger operations.

The ledger is the tuple of payments on an Invoice snapshot. Appending a
payment is the only way it changes; there is no update or delete. Amount
paid and balance due are projections over it, and after every append the
status is re-derived: settled means PAID, anything less means PARTIAL.
"""

from decimal import Decimal
from typing import Iterable

from core.config import LedgerConfig, DEFAULT_LEDGER_CONFIG
from core.exceptions import ValidationError, InvalidTransitionError, OverpaymentError
from core.models import Invoice, InvoiceStatus, Payment
from utils.money import has_sub_minor_units, round_money


def amount_paid(payments: Iterable[Payment]) -> Decimal:
    """Sum of payment amounts."""
    return sum((p.amount for p in payments), Decimal("0"))


def balance_due(invoice: Invoice) -> Decimal:
    """Outstanding balance, re-derived from the invoice's ledger and total."""
    return invoice.balance_due


def outstanding(invoice: Invoice) -> Decimal:
    """Balance due at payable precision (whole minor units)."""
    return round_money(invoice.balance_due)


def is_settled(invoice: Invoice) -> bool:
    """Whether the ledger covers the total. A zero-total invoice is settled."""
    return invoice.balance_due == 0


def check_ready_to_leave_draft(invoice: Invoice) -> None:
    """
    Raise unless a draft has line items, a client, and a description on every line.

    Applies to any way out of draft: a relabel or a recorded payment.
    """
    if not invoice.line_items:
        raise InvalidTransitionError(
            f"Invoice {invoice.id} has no line items. Add at least one before sending it.",
            current_status=invoice.status.value,
        )

    if invoice.client_id is None:
        raise InvalidTransitionError(
            f"Invoice {invoice.id} has no client. Assign a client before sending it.",
            current_status=invoice.status.value,
        )

    undescribed = [
        str(position)
        for position, item in enumerate(invoice.line_items, start=1)
        if not item.is_described
    ]
    if undescribed:
        raise ValidationError(
            f"Line item(s) {', '.join(undescribed)} need a description before the invoice leaves draft"
        )


def validate_payment(
    invoice: Invoice,
    amount: Decimal,
    config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
) -> None:
    """
    Check a proposed payment against the invoice without recording it.

    Args:
        invoice: Current snapshot
        amount: Proposed payment amount
        config: Ledger rules (overpayment tolerance)

    Raises:
        ValidationError: Amount not positive, or finer than the minor unit;
            or a draft with undescribed lines
        InvalidTransitionError: Invoice is cancelled, or a draft not ready
            to leave draft
        OverpaymentError: Amount exceeds balance due plus tolerance
    """
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"Payment amount must be greater than zero, got {amount}")

    if has_sub_minor_units(amount):
        raise ValidationError(
            f"Payment amount {amount} has more decimal places than the currency allows"
        )

    if invoice.status == InvoiceStatus.CANCELLED:
        raise InvalidTransitionError(
            f"Invoice {invoice.id} is cancelled and cannot accept payments",
            current_status=invoice.status.value,
        )

    # A payment moves a draft to partial or paid
    if invoice.status == InvoiceStatus.DRAFT:
        check_ready_to_leave_draft(invoice)

    balance = outstanding(invoice)
    if amount > balance + config.overpayment_tolerance:
        raise OverpaymentError(amount=amount, outstanding=balance)


def record_payment(
    invoice: Invoice,
    payment: Payment,
    config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
) -> Invoice:
    """
    Append a payment and re-derive status.

    Args:
        invoice: Current snapshot
        payment: Ledger entry as accepted by the backend
        config: Ledger rules

    Returns:
        New snapshot with the payment appended. Status becomes PAID if the
        balance reached zero, PARTIAL otherwise.

    Raises:
        ValidationError, InvalidTransitionError, OverpaymentError: see
        validate_payment. The input snapshot is never modified.
    """
    validate_payment(invoice, payment.amount, config)

    appended = invoice.model_copy(update={"payments": invoice.payments + (payment,)})
    return appended.model_copy(update={"status": derive_paid_status(appended)})


def derive_paid_status(invoice: Invoice) -> InvoiceStatus:
    """Status implied by a ledger that has at least one payment."""
    if is_settled(invoice):
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIAL
