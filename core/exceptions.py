"""
Typed exceptions for invoice ledger and status failures.

Each kind calls for a different user action (fix the input, pick another
status, try another payment method), so every class carries its own code
and a specific message. None of them are retried by the core.
"""

from decimal import Decimal


class BillingError(Exception):
    """Base class for ledger, status and payment errors."""

    code = "BILLING_ERROR"


class ValidationError(BillingError, ValueError):
    """
    Malformed input to the calculator or ledger.

    Negative or zero payment amounts, amounts finer than the currency's
    minor unit, undescribed line items on an invoice leaving draft.
    """

    code = "VALIDATION_ERROR"


class InvalidTransitionError(BillingError):
    """A status change violates the state machine's preconditions."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, message: str, current_status: str | None = None, target_status: str | None = None):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(message)


class OverpaymentError(BillingError):
    """A proposed payment exceeds the outstanding balance."""

    code = "OVERPAYMENT"

    def __init__(self, amount: Decimal, outstanding: Decimal):
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(
            f"Payment of {amount} exceeds the outstanding balance of {outstanding}. "
            f"Enter an amount no greater than the balance due."
        )


class GatewayError(BillingError):
    """
    Payment processor failure: declined card, unresolved authentication,
    network timeout, expired session.

    The message is the processor's own text, unmodified.
    """

    code = "PAYMENT_FAILED"

    def __init__(
        self,
        message: str,
        processor_code: str | None = None,
        decline_code: str | None = None,
        payment_intent_id: str | None = None,
    ):
        self.message = message
        self.processor_code = processor_code
        self.decline_code = decline_code
        self.payment_intent_id = payment_intent_id
        super().__init__(message)


class PaymentAbandonedError(BillingError):
    """The payer backed out of card entry. Nothing was charged or recorded."""

    code = "PAYMENT_ABANDONED"

    def __init__(self, message: str = "Payment was cancelled before it completed. The invoice was not changed."):
        super().__init__(message)
