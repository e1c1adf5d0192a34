from datetime import datetime, timezone

import pytest

from core.calculator import get_quote_grand_total
from core.credit_notes import (
    CreditNoteError,
    apply_credit_adjustments,
    create_credit_note,
    derive_credit_note,
)
from core.models import CreditAdjustments, LabourItem, MaterialItem

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def test_full_credit_matches_invoice_total(kitchen_invoice, vat_settings):
    result = create_credit_note(kitchen_invoice, "Work not completed", vat_settings)
    assert result.grand_total == get_quote_grand_total(kitchen_invoice, vat_settings)
    assert result.original_total == result.grand_total


def test_credit_note_linkage_and_cleared_fields(kitchen_invoice):
    note = derive_credit_note(kitchen_invoice, "Overcharged", now=NOW)
    assert note.is_credit_note
    assert note.original_invoice_id == "inv-1"
    assert note.credit_note_reason == "Overcharged"
    assert note.status == "paid"
    assert note.id != kitchen_invoice.id
    assert note.quote_date == NOW.date()
    assert note.created_at == NOW
    assert note.reference_number is None
    assert note.share_token is None
    assert note.accepted_at is None
    assert note.is_recurring is False
    assert note.recurring_frequency is None
    assert note.recurring_parent_id is None


def test_partial_credit_reduces_quantities_and_hours(kitchen_invoice, vat_settings):
    adjustments = CreditAdjustments(
        item_quantities={"sec-kitchen": {"itm-cable": 1}},
        labour_hours={"sec-kitchen": 1},
    )
    result = create_credit_note(
        kitchen_invoice, "Part refund", vat_settings, credit_type="partial", adjustments=adjustments
    )
    section = result.credit_note.sections[0]
    assert section.items[0].quantity == 1
    assert section.items[0].total_price == 10
    assert section.labour_hours == 1
    # materials 60 + labour 40 = 100, +10% markup = 110, +20% VAT = 132
    assert result.grand_total == pytest.approx(132)


def test_partial_credit_leaves_invoice_untouched(kitchen_invoice):
    adjustments = CreditAdjustments(item_quantities={"sec-kitchen": {"itm-cable": 0}})
    derive_credit_note(kitchen_invoice, "x", "partial", adjustments)
    assert kitchen_invoice.sections[0].items[0].quantity == 3
    assert kitchen_invoice.sections[0].items[0].total_price == 30


def test_unchanged_sections_are_shared_not_copied(kitchen_invoice):
    sections = apply_credit_adjustments(kitchen_invoice.sections, CreditAdjustments())
    assert sections[0] is kitchen_invoice.sections[0]


def test_negative_quantities_clamp_to_zero(kitchen_invoice):
    adjustments = CreditAdjustments(item_quantities={"sec-kitchen": {"itm-cu": -4}})
    note = derive_credit_note(kitchen_invoice, "x", "partial", adjustments)
    assert note.sections[0].items[1].quantity == 0
    assert note.sections[0].items[1].total_price == 0


def test_labour_item_hours_adjustment(kitchen_invoice, kitchen_section):
    section = kitchen_section.model_copy(
        update={"labour_items": [LabourItem(id="lab-1", hours=4)]}
    )
    invoice = kitchen_invoice.model_copy(update={"sections": [section]})
    adjustments = CreditAdjustments(labour_item_hours={"sec-kitchen": {"lab-1": 1}})
    note = derive_credit_note(invoice, "x", "partial", adjustments)
    assert note.sections[0].labour_items[0].hours == 1


def test_zeroed_partial_credit_is_rejected(kitchen_invoice, vat_settings):
    adjustments = CreditAdjustments(
        item_quantities={"sec-kitchen": {"itm-cable": 0, "itm-cu": 0}},
        labour_hours={"sec-kitchen": 0},
    )
    note = derive_credit_note(kitchen_invoice, "x", "partial", adjustments)
    assert get_quote_grand_total(note, vat_settings) <= 0

    with pytest.raises(CreditNoteError):
        create_credit_note(
            kitchen_invoice, "x", vat_settings, credit_type="partial", adjustments=adjustments
        )


def test_full_credit_ignores_adjustments(kitchen_invoice):
    adjustments = CreditAdjustments(item_quantities={"sec-kitchen": {"itm-cable": 0}})
    note = derive_credit_note(kitchen_invoice, "x", "full", adjustments)
    assert note.sections == kitchen_invoice.sections


def test_heading_rows_are_not_adjusted(kitchen_invoice, kitchen_section):
    heading = MaterialItem(id="hdr", name="Second fix", is_heading=True)
    section = kitchen_section.model_copy(update={"items": [heading, *kitchen_section.items]})
    invoice = kitchen_invoice.model_copy(update={"sections": [section]})
    adjustments = CreditAdjustments(item_quantities={"sec-kitchen": {"hdr": 5}})
    note = derive_credit_note(invoice, "x", "partial", adjustments)
    assert note.sections[0].items[0] is heading


def test_only_invoices_can_be_credited(kitchen_quote, kitchen_invoice, vat_settings):
    with pytest.raises(CreditNoteError):
        create_credit_note(kitchen_quote, "x", vat_settings)

    note = create_credit_note(kitchen_invoice, "x", vat_settings).credit_note
    with pytest.raises(CreditNoteError):
        create_credit_note(note, "again", vat_settings)
