"""Tests for the invoice draft reducer."""

from datetime import date
from decimal import Decimal

import pytest

from core.draft import (
    AddLineItem,
    DraftAction,
    InvoiceDraft,
    RemoveLineItem,
    SetClient,
    SetDiscountRate,
    SetDueDate,
    SetNotes,
    SetTaxRate,
    UpdateLineItem,
    reduce,
)
from core.exceptions import ValidationError
from core.models import LineItem
from factories import make_invoice


def apply_all(draft: InvoiceDraft, *actions: DraftAction) -> InvoiceDraft:
    for action in actions:
        draft = reduce(draft, action)
    return draft


class TestDraftDefaults:

    def test_new_draft_has_one_empty_line(self):
        draft = InvoiceDraft()

        assert len(draft.line_items) == 1
        assert draft.line_items[0].description == ""
        assert draft.line_items[0].quantity == 1
        assert draft.line_items[0].unit_price == 0
        assert draft.totals.total == 0

    def test_from_invoice_copies_lines_and_tax(self):
        invoice = make_invoice(total="400.00", tax_rate="10")

        draft = InvoiceDraft.from_invoice(invoice)

        assert draft.client_id == "client-1"
        assert draft.totals.total == Decimal("440.00")


class TestReduce:

    def test_typing_updates_totals(self):
        draft = apply_all(
            InvoiceDraft(),
            UpdateLineItem(0, "description", "Logo design"),
            UpdateLineItem(0, "quantity", "3"),
            UpdateLineItem(0, "unit_price", "150.50"),
            SetTaxRate("10"),
        )

        assert draft.line_items[0].line_total == Decimal("451.50")
        assert draft.totals.subtotal == Decimal("451.50")
        assert draft.totals.total == Decimal("496.65")

    @pytest.mark.parametrize("raw", ["", "  ", "abc", "1.2.3", None, "-4", "NaN", "Infinity"])
    def test_unparsable_numbers_become_zero(self, raw):
        draft = reduce(InvoiceDraft(), UpdateLineItem(0, "quantity", raw))

        assert draft.line_items[0].quantity == 0

    @pytest.mark.parametrize("field", ["quantity", "unit_price"])
    def test_absurdly_large_number_becomes_zero(self, field):
        draft = reduce(InvoiceDraft(), UpdateLineItem(0, field, "1e999999"))

        assert getattr(draft.line_items[0], field) == 0
        assert draft.totals.total == 0

    def test_largest_inputs_keep_totals_computable(self):
        draft = apply_all(
            InvoiceDraft(),
            UpdateLineItem(0, "quantity", "1e12"),
            UpdateLineItem(0, "unit_price", "1e12"),
            SetTaxRate("1e12"),
        )

        totals = draft.totals.rounded()

        assert totals.subtotal == Decimal("1e24")
        assert totals.total > totals.subtotal

    def test_comma_grouped_price_parses(self):
        draft = reduce(InvoiceDraft(), UpdateLineItem(0, "unit_price", "1,200.00"))

        assert draft.line_items[0].unit_price == Decimal("1200.00")

    def test_add_and_remove_lines(self):
        draft = apply_all(
            InvoiceDraft(),
            AddLineItem(),
            AddLineItem(),
            UpdateLineItem(1, "description", "Second"),
            RemoveLineItem(0),
        )

        assert [i.description for i in draft.line_items] == ["Second", ""]

    def test_last_line_can_be_removed(self):
        draft = reduce(InvoiceDraft(), RemoveLineItem(0))

        assert draft.line_items == ()
        assert draft.totals.subtotal == 0

    def test_out_of_range_index_is_ignored(self):
        draft = InvoiceDraft()

        assert reduce(draft, RemoveLineItem(5)) is draft
        assert reduce(draft, UpdateLineItem(-1, "quantity", "2")) is draft

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown line item field 'line_total'"):
            reduce(InvoiceDraft(), UpdateLineItem(0, "line_total", "99"))

    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError, match="Unknown draft action"):
            reduce(InvoiceDraft(), DraftAction())

    def test_other_fields(self):
        draft = apply_all(
            InvoiceDraft(),
            SetClient("client-7"),
            SetDiscountRate("5"),
            SetDueDate("2026-02-01"),
            SetNotes("Net 30"),
        )

        assert draft.client_id == "client-7"
        assert draft.discount_rate == Decimal("5")
        assert draft.due_date == date(2026, 2, 1)
        assert draft.notes == "Net 30"

    def test_reduce_never_mutates_input(self):
        draft = InvoiceDraft()

        reduce(draft, UpdateLineItem(0, "quantity", "7"))

        assert draft.line_items[0].quantity == 1


class TestFinalize:

    def test_blank_lines_dropped(self):
        draft = apply_all(
            InvoiceDraft(client_id="client-1"),
            UpdateLineItem(0, "description", "Hosting"),
            UpdateLineItem(0, "unit_price", "20"),
            AddLineItem(),
            UpdateLineItem(1, "unit_price", ""),
        )

        items = draft.finalize()

        assert len(items) == 1
        assert items[0].description == "Hosting"

    def test_billed_line_without_description_rejected(self):
        draft = InvoiceDraft(
            client_id="client-1",
            line_items=(LineItem(description="", unit_price=Decimal("20")),),
        )

        with pytest.raises(ValidationError, match="Line item 1 needs a description"):
            draft.finalize()

    def test_no_described_line_rejected(self):
        with pytest.raises(ValidationError, match="at least one line item"):
            InvoiceDraft(client_id="client-1").finalize()

    def test_client_required(self):
        with pytest.raises(ValidationError, match="client"):
            InvoiceDraft().finalize()
