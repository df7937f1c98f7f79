"""
Line item domain models.

Amounts are Decimal in the invoice currency. line_total is always derived
from quantity and unit_price and cannot be set.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, computed_field

from utils.money import MAX_NUMBER, parse_number


class LineItem(BaseModel):
    """One billable line on an invoice."""

    id: str | None = None
    description: str = Field("", max_length=500)
    quantity: Decimal = Field(Decimal("1"), ge=0, le=MAX_NUMBER)
    unit_price: Decimal = Field(Decimal("0"), ge=0, le=MAX_NUMBER)

    model_config = {"frozen": True}

    @computed_field
    @property
    def line_total(self) -> Decimal:
        """quantity * unit_price, unrounded."""
        return self.quantity * self.unit_price

    @property
    def is_described(self) -> bool:
        return bool(self.description.strip())

    @property
    def is_blank(self) -> bool:
        """No description and nothing billed. Dropped when a draft is finalized."""
        return not self.is_described and self.line_total == 0

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "LineItem":
        """
        Build from a backend item record.

        Older records use 'rate' for the unit price. A stored 'total' or
        'amount' is ignored; the line total is always recomputed.
        """
        item_id = record.get("id")
        return cls(
            id=str(item_id) if item_id is not None else None,
            description=record.get("description") or "",
            quantity=parse_number(record.get("quantity")),
            unit_price=parse_number(record.get("unit_price", record.get("rate"))),
        )

    def to_record(self) -> dict[str, Any]:
        record = {
            "description": self.description,
            "quantity": str(self.quantity),
            "unit_price": str(self.unit_price),
            "total": str(self.line_total),
        }
        if self.id is not None:
            record["id"] = self.id
        return record
