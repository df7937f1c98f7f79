"""
Card processor client for Stripe-compatible payment intents.

Two calls make up a card capture: create an intent for the amount, then
confirm it with the tokenized card the payer entered. Card data never passes
through here, only the payment method token.

Requests are form-encoded with bearer auth, as the processor API expects.
"""

import logging
from typing import Any

import requests

from core.models import PaymentIntent

logger = logging.getLogger(__name__)


class CardProcessorError(Exception):
    """
    Processor call failed.

    message is the processor's own text, unmodified. code and decline_code
    are copied from the processor's error object when it sends one.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        decline_code: str | None = None,
        payment_intent_id: str | None = None,
        status_code: int | None = None,
    ):
        self.message = message
        self.code = code
        self.decline_code = decline_code
        self.payment_intent_id = payment_intent_id
        self.status_code = status_code
        super().__init__(message)


class CardProcessorClient:
    """Create and confirm payment intents on a Stripe-compatible API."""

    def __init__(self, secret_key: str, api_base: str = "https://api.stripe.com", timeout: int = 30):
        """
        Initialize with processor credentials.

        Args:
            secret_key: Server-side API key
            api_base: Processor base URL
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If secret_key or api_base is empty
        """
        if not secret_key:
            raise ValueError("secret_key is required")
        if not api_base:
            raise ValueError("api_base is required")

        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, data: dict[str, Any], idempotency_key: str | None = None) -> dict:
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        try:
            response = requests.post(
                f"{self.api_base}{path}",
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Card processor connection failed: {e}")
            raise CardProcessorError(f"Could not reach the payment processor: {e}")

        try:
            body = response.json()
        except ValueError:
            logger.error(f"Card processor returned invalid JSON ({response.status_code}): {response.text}")
            raise CardProcessorError(
                "The payment processor returned an unreadable response",
                status_code=response.status_code,
            )

        if response.status_code >= 400 or "error" in body:
            error = body.get("error") or {}
            intent = error.get("payment_intent") or {}
            message = error.get("message") or f"Payment processor error ({response.status_code})"
            logger.error(
                f"Card processor error on {path}: {message} "
                f"(code={error.get('code')}, decline_code={error.get('decline_code')})"
            )
            raise CardProcessorError(
                message,
                code=error.get("code"),
                decline_code=error.get("decline_code"),
                payment_intent_id=intent.get("id"),
                status_code=response.status_code,
            )

        return body

    @staticmethod
    def _to_intent(body: dict) -> PaymentIntent:
        return PaymentIntent(
            id=body["id"],
            status=body["status"],
            amount_minor=int(body["amount"]),
            currency=body["currency"],
            client_secret=body.get("client_secret"),
            last_error=(body.get("last_payment_error") or {}).get("message"),
        )

    def create_payment_intent(
        self,
        amount_minor: int,
        currency: str,
        invoice_id: str,
        receipt_email: str | None = None,
        customer_name: str | None = None,
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        """
        Create a card charge awaiting confirmation.

        Args:
            amount_minor: Amount in minor units (cents)
            currency: ISO 4217 code, any case
            invoice_id: Stored in metadata so the charge can be traced back
            receipt_email: Where the processor sends its receipt
            customer_name: Shown on the processor's dashboard
            idempotency_key: Passed through unchanged

        Raises:
            CardProcessorError: On any failure
        """
        data = {
            "amount": amount_minor,
            "currency": currency.lower(),
            "payment_method_types[]": "card",
            "metadata[invoice_id]": invoice_id,
            "description": f"Invoice {invoice_id}",
        }
        if receipt_email:
            data["receipt_email"] = receipt_email
        if customer_name:
            data["metadata[customer_name]"] = customer_name

        intent = self._to_intent(self._post("/v1/payment_intents", data, idempotency_key))
        logger.info(f"Created payment intent {intent.id} for invoice {invoice_id} ({amount_minor} {currency})")
        return intent

    def confirm_payment_intent(self, intent_id: str, payment_method: str) -> PaymentIntent:
        """
        Confirm an intent with a tokenized card.

        A declined card comes back as CardProcessorError. A confirmation that
        needs further authentication comes back as an intent whose status is
        not 'succeeded'; the caller decides what that means.

        Raises:
            CardProcessorError: On any failure
        """
        body = self._post(
            f"/v1/payment_intents/{intent_id}/confirm",
            {"payment_method": payment_method},
        )
        return self._to_intent(body)
