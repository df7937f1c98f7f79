"""
Line item calculator.

Pure functions from line items and rates to invoice totals. Safe to call on
every keystroke of an editing form: inputs are already-parsed Decimals (see
utils.money.parse_number) and nothing here raises or rounds.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from pydantic import BaseModel

from utils.money import round_money

if TYPE_CHECKING:
    from core.models.line_item import LineItem

_HUNDRED = Decimal("100")


class InvoiceTotals(BaseModel):
    """Derived totals. Never stored independently of the line items."""

    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal

    model_config = {"frozen": True}

    def rounded(self) -> "InvoiceTotals":
        """Copy rounded to the minor unit, for display."""
        return InvoiceTotals(
            subtotal=round_money(self.subtotal),
            tax_amount=round_money(self.tax_amount),
            discount_amount=round_money(self.discount_amount),
            total=round_money(self.total),
        )


def compute_totals(
    line_items: Iterable["LineItem"],
    tax_rate: Decimal = Decimal("0"),
    discount_rate: Decimal = Decimal("0"),
) -> InvoiceTotals:
    """
    Compute subtotal, tax, discount and total.

    Args:
        line_items: Items whose line_total is quantity * unit_price
        tax_rate: Percentage, e.g. Decimal("8.25")
        discount_rate: Percentage. Estimates use it; invoices pass zero.

    Returns:
        Unrounded totals. An empty item set yields all zeros.
    """
    subtotal = sum((item.line_total for item in line_items), Decimal("0"))
    tax_amount = subtotal * tax_rate / _HUNDRED
    discount_amount = subtotal * discount_rate / _HUNDRED

    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total=subtotal + tax_amount - discount_amount,
    )
