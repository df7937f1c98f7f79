"""Ledger and payment gateway configuration."""

from decimal import Decimal

from pydantic import BaseModel, Field


class LedgerConfig(BaseModel):
    """
    Ledger rules.

    Overpayment is rejected rather than clamped or credited forward; the
    tolerance is how far past the outstanding balance a payment may go.
    """

    overpayment_tolerance: Decimal = Field(
        default=Decimal("0"),
        description="Amount a payment may exceed the balance due by",
        ge=0,
    )
    currency: str = Field(
        default="USD",
        description="ISO 4217 code used for display and card captures",
        min_length=3,
        max_length=3,
    )

    model_config = {"frozen": True}


class GatewayConfig(BaseModel):
    """Card processor connection settings. The secret key comes from Vault."""

    api_base: str = Field(
        default="https://api.stripe.com",
        description="Base URL of the Stripe-compatible processor API",
    )
    timeout_seconds: int = Field(
        default=30,
        description="Per-request timeout for processor calls",
        ge=1,
        le=120,
    )


DEFAULT_LEDGER_CONFIG = LedgerConfig()
