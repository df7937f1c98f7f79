"""Core domain models."""

from core.models.line_item import LineItem
from core.models.payment import (
    Payment, PaymentCreate, PaymentMethod, parse_payment_method,
    BillingContext, PaymentIntent, PaymentResult,
)
from core.models.invoice import Invoice, InvoiceStatus
from core.models.summary import InvoiceSummary, ClientRollup

__all__ = [
    # LineItem
    "LineItem",
    # Payment
    "Payment", "PaymentCreate", "PaymentMethod", "parse_payment_method",
    "BillingContext", "PaymentIntent", "PaymentResult",
    # Invoice
    "Invoice", "InvoiceStatus",
    # Summary
    "InvoiceSummary", "ClientRollup",
]
