"""
Invoice draft editing.

An InvoiceDraft is the state of an invoice form while someone is typing.
Every edit is an action object fed through reduce(), which returns a new
draft. Totals are a projection of the current line items and are never
stored on the draft, so there is nothing to keep in sync when a quantity
or price changes.

Raw form input (strings, blanks, half-typed numbers) goes through
utils.money.parse_number here and nowhere else.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from core.exceptions import ValidationError
from core.models import Invoice, LineItem
from core.totals import InvoiceTotals, compute_totals
from utils.money import MAX_NUMBER, parse_number
from utils.timezone import parse_date

EDITABLE_ITEM_FIELDS = ("description", "quantity", "unit_price")


class InvoiceDraft(BaseModel):
    """Editable invoice form state. Starts with one empty line."""

    client_id: str | None = None
    line_items: tuple[LineItem, ...] = (LineItem(),)
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=MAX_NUMBER)
    discount_rate: Decimal = Field(Decimal("0"), ge=0, le=MAX_NUMBER)
    issue_date: date | None = None
    due_date: date | None = None
    notes: str | None = None

    model_config = {"frozen": True}

    @property
    def totals(self) -> InvoiceTotals:
        return compute_totals(self.line_items, self.tax_rate, self.discount_rate)

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceDraft":
        """Start editing an existing invoice."""
        return cls(
            client_id=invoice.client_id,
            line_items=invoice.line_items or (LineItem(),),
            tax_rate=invoice.tax_rate,
            issue_date=invoice.issue_date,
            due_date=invoice.due_date,
            notes=invoice.notes,
        )

    def finalize(self) -> tuple[LineItem, ...]:
        """
        Line items ready to save.

        Blank rows (no description, nothing billed) are dropped.

        Raises:
            ValidationError: A row bills an amount without a description, no
                described row remains, or no client is selected
        """
        if self.client_id is None:
            raise ValidationError("Select a client for this invoice")

        kept = []
        for position, item in enumerate(self.line_items, start=1):
            if item.is_blank:
                continue
            if not item.is_described:
                raise ValidationError(f"Line item {position} needs a description")
            kept.append(item)

        if not kept:
            raise ValidationError("Add at least one line item with a description")

        return tuple(kept)


# =============================================================================
# ACTIONS
# =============================================================================


@dataclass(frozen=True)
class DraftAction:
    """Base class for draft edits."""
    pass


@dataclass(frozen=True)
class AddLineItem(DraftAction):
    """Append an empty line."""
    pass


@dataclass(frozen=True)
class RemoveLineItem(DraftAction):
    """Remove the line at index. Out-of-range indexes are ignored."""
    index: int


@dataclass(frozen=True)
class UpdateLineItem(DraftAction):
    """Set one field of the line at index from raw input."""
    index: int
    field: str
    value: Any


@dataclass(frozen=True)
class SetTaxRate(DraftAction):
    value: Any


@dataclass(frozen=True)
class SetDiscountRate(DraftAction):
    value: Any


@dataclass(frozen=True)
class SetClient(DraftAction):
    client_id: str | None


@dataclass(frozen=True)
class SetDueDate(DraftAction):
    value: Any


@dataclass(frozen=True)
class SetNotes(DraftAction):
    value: str | None


# =============================================================================
# REDUCER
# =============================================================================


def _update_item(item: LineItem, field: str, value: Any) -> LineItem:
    if field not in EDITABLE_ITEM_FIELDS:
        raise ValueError(
            f"Unknown line item field '{field}'. Valid fields: {', '.join(EDITABLE_ITEM_FIELDS)}"
        )
    if field == "description":
        parsed = "" if value is None else str(value)
    else:
        parsed = parse_number(value)
    return item.model_copy(update={field: parsed})


def reduce(draft: InvoiceDraft, action: DraftAction) -> InvoiceDraft:
    """
    Apply one edit to a draft.

    Args:
        draft: Current form state
        action: Edit to apply

    Returns:
        New draft; the input is never modified

    Raises:
        ValueError: Unknown action type or line item field, or a due date
            that is not an ISO date
    """
    items = draft.line_items

    if isinstance(action, AddLineItem):
        return draft.model_copy(update={"line_items": items + (LineItem(),)})

    if isinstance(action, RemoveLineItem):
        if not 0 <= action.index < len(items):
            return draft
        remaining = items[:action.index] + items[action.index + 1:]
        return draft.model_copy(update={"line_items": remaining})

    if isinstance(action, UpdateLineItem):
        if not 0 <= action.index < len(items):
            return draft
        updated = _update_item(items[action.index], action.field, action.value)
        return draft.model_copy(update={
            "line_items": items[:action.index] + (updated,) + items[action.index + 1:]
        })

    if isinstance(action, SetTaxRate):
        return draft.model_copy(update={"tax_rate": parse_number(action.value)})

    if isinstance(action, SetDiscountRate):
        return draft.model_copy(update={"discount_rate": parse_number(action.value)})

    if isinstance(action, SetClient):
        return draft.model_copy(update={"client_id": action.client_id or None})

    if isinstance(action, SetDueDate):
        return draft.model_copy(update={"due_date": parse_date(action.value or None)})

    if isinstance(action, SetNotes):
        return draft.model_copy(update={"notes": action.value or None})

    raise ValueError(f"Unknown draft action: {type(action).__name__}")
