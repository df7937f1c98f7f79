"""
Invoice status state machine.

Most transitions are plain relabels. PARTIAL and PAID are different: they
are compound operations that carry a payment, because a paid label without
a matching ledger entry would break the balance invariants. The payment is
validated together with the transition and appended before the status is
set, so a failed payment never leaves a changed status behind.

    draft ──▶ sent ──▶ partial ──▶ paid
      │        │  ╲        │
      │        ▼   ╲───────┼──▶ overdue / cancelled (relabel)
      ▼     overdue        ▼
  cancelled            auto-promoted to paid when the balance hits zero

Leaving draft requires described line items and a client. Cancelled
invoices keep their payments but owe nothing, and cannot be reopened by a
payment.
"""

import logging
from decimal import Decimal

from pydantic import BaseModel

from core import ledger
from core.config import LedgerConfig, DEFAULT_LEDGER_CONFIG
from core.exceptions import BillingError, InvalidTransitionError
from core.models import Invoice, InvoiceStatus, Payment, PaymentCreate
from utils.money import round_money

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = frozenset({InvoiceStatus.PARTIAL, InvoiceStatus.PAID})


class StatusChange(BaseModel):
    """
    Request to move an invoice to target_status.

    For PARTIAL and PAID the payment travels with the request; the status
    only changes if the payment is accepted.
    """

    target_status: InvoiceStatus
    payment: PaymentCreate | None = None

    model_config = {"frozen": True}


def _relabeled(invoice: Invoice, target: InvoiceStatus) -> Invoice:
    return invoice.model_copy(update={"status": target})


def requires_payment(invoice: Invoice, target: InvoiceStatus) -> bool:
    """
    Whether moving to target needs a payment collected first.

    PARTIAL always does. PAID does unless the ledger already covers the
    total.
    """
    if target == InvoiceStatus.PARTIAL:
        return True
    if target == InvoiceStatus.PAID:
        return _relabeled(invoice, target).balance_due > 0
    return False


def validate_status_change(
    invoice: Invoice,
    target: InvoiceStatus,
    amount: Decimal | None = None,
    config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
) -> None:
    """
    Check a status change, and its payment amount if any, without applying it.

    Used before a card capture so nothing is charged for a transition that
    would be refused anyway.

    Args:
        invoice: Current snapshot
        target: Requested status
        amount: Amount of the accompanying payment, or None
        config: Ledger rules

    Raises:
        InvalidTransitionError: Preconditions of the transition not met
        ValidationError: Malformed amount or undescribed line items
        OverpaymentError: Amount exceeds the balance due
    """
    current = invoice.status

    if amount is None and target == current and target != InvoiceStatus.PAID:
        return

    if amount is not None and target not in PAYMENT_STATUSES:
        raise InvalidTransitionError(
            f"A payment can only accompany a change to partial or paid, not {target.value}",
            current_status=current.value,
            target_status=target.value,
        )

    if current == InvoiceStatus.DRAFT and target not in (InvoiceStatus.DRAFT, InvoiceStatus.CANCELLED):
        ledger.check_ready_to_leave_draft(invoice)

    if target not in PAYMENT_STATUSES:
        return

    if amount is None:
        if target == InvoiceStatus.PARTIAL:
            raise InvalidTransitionError(
                f"Marking invoice {invoice.id} as partially paid requires recording a payment",
                current_status=current.value,
                target_status=target.value,
            )
        remaining = _relabeled(invoice, target).balance_due
        if remaining > 0:
            raise InvalidTransitionError(
                f"Invoice {invoice.id} still has {round_money(remaining)} outstanding. "
                f"Record a payment for the balance to mark it paid.",
                current_status=current.value,
                target_status=target.value,
            )
        return

    if current == InvoiceStatus.CANCELLED:
        raise InvalidTransitionError(
            f"Invoice {invoice.id} is cancelled. A payment cannot reopen its balance.",
            current_status=current.value,
            target_status=target.value,
        )

    ledger.validate_payment(invoice, amount, config)

    if target == InvoiceStatus.PAID:
        left_over = round_money(invoice.balance_due - amount)
        if left_over > 0:
            raise InvalidTransitionError(
                f"A payment of {amount} leaves {left_over} outstanding on invoice {invoice.id}. "
                f"Marking it paid requires the full balance of {ledger.outstanding(invoice)}.",
                current_status=current.value,
                target_status=target.value,
            )


def apply_status_change(
    invoice: Invoice,
    target: InvoiceStatus,
    payment: Payment | None = None,
    config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
) -> Invoice:
    """
    Apply a status change, appending its payment first if there is one.

    Args:
        invoice: Current snapshot
        target: Requested status
        payment: Ledger entry accepted by the backend, for PARTIAL/PAID
        config: Ledger rules

    Returns:
        New snapshot. With a payment the status is whatever the ledger
        implies, so a PARTIAL request that settles the invoice comes back
        PAID.

    Raises:
        InvalidTransitionError, ValidationError, OverpaymentError: The
        input snapshot is left untouched.
    """
    validate_status_change(invoice, target, payment.amount if payment else None, config)

    if payment is None:
        if target == invoice.status:
            return invoice
        logger.info(f"Invoice {invoice.id} status {invoice.status.value} -> {target.value}")
        return _relabeled(invoice, target)

    updated = ledger.record_payment(invoice, payment, config)
    if updated.status != target:
        logger.info(
            f"Invoice {invoice.id} auto-promoted to {updated.status.value} "
            f"(requested {target.value})"
        )
    return updated


def allowed_targets(
    invoice: Invoice,
    config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
) -> list[InvoiceStatus]:
    """
    Statuses the invoice can move to, directly or by collecting a payment.

    PARTIAL and PAID are offered when a payment of the outstanding balance
    would be accepted.
    """
    allowed = []
    for target in InvoiceStatus:
        amount = ledger.outstanding(invoice) if requires_payment(invoice, target) else None
        try:
            validate_status_change(invoice, target, amount, config)
        except BillingError:
            continue
        allowed.append(target)
    return allowed
