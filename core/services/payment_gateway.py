"""
Payment gateway adapter.

Turns a payment request into a PaymentResult, or an error, before anything
touches the ledger. Manual methods (cash, check, bank transfer, PayPal,
other) were settled outside the system and need no external call. Card
methods go through the card processor in two phases: create an intent,
then confirm it with the card the payer enters in the processor's widget.

No retries. A card charge is not safely repeatable without an idempotency
key, so retrying is the caller's decision.
"""

import logging
from decimal import Decimal
from typing import Callable

from clients.card_processor_client import CardProcessorClient, CardProcessorError
from core.exceptions import GatewayError, PaymentAbandonedError, ValidationError
from core.models import BillingContext, PaymentIntent, PaymentMethod, PaymentResult
from utils.money import has_sub_minor_units, to_minor_units
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

MANUAL_METHODS = frozenset({
    PaymentMethod.CASH,
    PaymentMethod.CHECK,
    PaymentMethod.BANK_TRANSFER,
    PaymentMethod.PAYPAL,
    PaymentMethod.OTHER,
})
CARD_METHODS = frozenset({PaymentMethod.CREDIT_CARD, PaymentMethod.STRIPE})

# Receives the intent, shows the card widget, returns the tokenized payment
# method id, or None if the payer closed the widget.
CardCollector = Callable[[PaymentIntent], "str | None"]


class PaymentGatewayAdapter:
    """Captures payments through the method-appropriate channel."""

    def __init__(self, processor: CardProcessorClient | None = None, currency: str = "USD"):
        """
        Args:
            processor: Card processor client. Only needed for card methods.
            currency: ISO 4217 code for card captures
        """
        self.processor = processor
        self.currency = currency

    def requires_card(self, method: PaymentMethod) -> bool:
        return method in CARD_METHODS

    def capture(
        self,
        amount: Decimal,
        invoice_id: str,
        billing_context: BillingContext | None,
        method: PaymentMethod,
        collect_card: CardCollector | None = None,
        idempotency_key: str | None = None,
    ) -> PaymentResult:
        """
        Capture a payment.

        Args:
            amount: Amount to capture, in whole minor units
            invoice_id: Invoice the payment is for
            billing_context: Payer details for the processor's receipt
            method: Payment method
            collect_card: Card widget callback, required for card methods
            idempotency_key: Passed to the processor unchanged

        Returns:
            PaymentResult. gateway_reference is the confirmed intent id for
            card payments and None for manual ones.

        Raises:
            ValidationError: Malformed amount, or card method without a collector
            GatewayError: Processor declined or failed; message is the processor's
            PaymentAbandonedError: Payer closed the card widget
        """
        if not amount.is_finite() or amount <= 0 or has_sub_minor_units(amount):
            raise ValidationError(f"Cannot capture a payment of {amount}")

        if method in MANUAL_METHODS:
            return PaymentResult(
                amount=amount,
                payment_method=method,
                gateway_reference=None,
                captured_at=now_utc(),
            )

        if self.requires_card(method):
            return self._capture_card(amount, invoice_id, billing_context, method, collect_card, idempotency_key)

        raise ValueError(f"Unhandled payment method: {method}")

    def _capture_card(
        self,
        amount: Decimal,
        invoice_id: str,
        billing_context: BillingContext | None,
        method: PaymentMethod,
        collect_card: CardCollector | None,
        idempotency_key: str | None,
    ) -> PaymentResult:
        if self.processor is None:
            raise GatewayError("Card payments are not configured for this account")
        if collect_card is None:
            raise ValidationError("Card payments need card details from the payer")

        context = billing_context or BillingContext()

        try:
            intent = self.processor.create_payment_intent(
                amount_minor=to_minor_units(amount),
                currency=self.currency,
                invoice_id=invoice_id,
                receipt_email=context.email,
                customer_name=context.name,
                idempotency_key=idempotency_key,
            )
        except CardProcessorError as e:
            raise self._gateway_error(e)

        payment_method = collect_card(intent)
        if not payment_method:
            logger.info(f"Card entry abandoned for invoice {invoice_id} (intent {intent.id})")
            raise PaymentAbandonedError()

        try:
            confirmed = self.processor.confirm_payment_intent(intent.id, payment_method)
        except CardProcessorError as e:
            raise self._gateway_error(e, intent.id)

        if confirmed.status != "succeeded":
            logger.warning(f"Payment intent {confirmed.id} ended in status '{confirmed.status}'")
            if confirmed.last_error:
                message = confirmed.last_error
            elif confirmed.status == "requires_action":
                message = "Your card requires additional authentication that was not completed."
            else:
                message = f"The payment did not complete (status: {confirmed.status})."
            raise GatewayError(message, processor_code=confirmed.status, payment_intent_id=confirmed.id)

        logger.info(f"Captured {amount} by {method.value} for invoice {invoice_id} (intent {confirmed.id})")
        return PaymentResult(
            amount=amount,
            payment_method=method,
            gateway_reference=confirmed.id,
            captured_at=now_utc(),
        )

    @staticmethod
    def _gateway_error(error: CardProcessorError, intent_id: str | None = None) -> GatewayError:
        return GatewayError(
            error.message,
            processor_code=error.code,
            decline_code=error.decline_code,
            payment_intent_id=error.payment_intent_id or intent_id,
        )
