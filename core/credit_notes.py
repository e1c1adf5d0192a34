# core/credit_notes.py
# Credit notes are derived from an invoice, computed through the same totals
# pipeline, and blocked at creation when their total is not positive.

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .calculator import get_quote_grand_total
from .logging_utils import get_logger, log_event
from .models import (
    CreditAdjustments,
    CreditType,
    Quote,
    QuoteSection,
    QuoteTotalSettings,
    gen_id,
    utc_now,
)

log = get_logger("credit_notes")


class CreditNoteError(ValueError):
    pass


class CreditNoteResult(BaseModel):
    credit_note: Quote
    grand_total: float
    original_total: float


# ---------- ADJUSTMENT ----------

def _adjust_section(section: QuoteSection, adjustments: CreditAdjustments) -> QuoteSection:
    """Copy-on-write: untouched items and sections are shared, not copied."""
    update: dict = {}

    quantities = adjustments.item_quantities.get(section.id)
    if quantities:
        update["items"] = [
            item.model_copy(update={"quantity": max(0.0, quantities[item.id])})
            if item.id in quantities and not item.is_heading
            else item
            for item in section.items
        ]

    if section.id in adjustments.labour_hours:
        update["labour_hours"] = max(0.0, adjustments.labour_hours[section.id])

    item_hours = adjustments.labour_item_hours.get(section.id)
    if item_hours:
        update["labour_items"] = [
            li.model_copy(update={"hours": max(0.0, item_hours[li.id])}) if li.id in item_hours else li
            for li in section.labour_items
        ]

    return section.model_copy(update=update) if update else section


def apply_credit_adjustments(
    sections: list[QuoteSection], adjustments: CreditAdjustments
) -> list[QuoteSection]:
    return [_adjust_section(s, adjustments) for s in sections]


# ---------- DERIVATION ----------

def derive_credit_note(
    invoice: Quote,
    reason: str,
    credit_type: CreditType = "full",
    adjustments: Optional[CreditAdjustments] = None,
    now: Optional[datetime] = None,
) -> Quote:
    """Build the credit note document for `invoice` (not yet validated)."""
    if credit_type == "partial":
        sections = apply_credit_adjustments(invoice.sections, adjustments or CreditAdjustments())
    else:
        sections = invoice.sections

    when = now or utc_now()
    return invoice.model_copy(
        update={
            "id": gen_id(),
            "sections": sections,
            "is_credit_note": True,
            "original_invoice_id": invoice.id,
            "credit_note_reason": reason,
            # immediately effective
            "status": "paid",
            "quote_date": when.date(),
            "created_at": when,
            "updated_at": when,
            "reference_number": None,
            "parent_quote_id": None,
            "share_token": None,
            "accepted_at": None,
            "declined_at": None,
            "is_recurring": False,
            "recurring_frequency": None,
            "recurring_start_date": None,
            "recurring_end_date": None,
            "recurring_next_date": None,
            "recurring_parent_id": None,
        }
    )


def create_credit_note(
    invoice: Quote,
    reason: str,
    settings: QuoteTotalSettings,
    credit_type: CreditType = "full",
    adjustments: Optional[CreditAdjustments] = None,
    now: Optional[datetime] = None,
) -> CreditNoteResult:
    """Derive and validate a credit note; a total of zero or less is rejected."""
    if invoice.is_credit_note:
        raise CreditNoteError("Cannot issue a credit note against another credit note")
    if not invoice.is_invoice:
        raise CreditNoteError(f"Credit notes can only be issued against invoices, not a {invoice.type}")

    note = derive_credit_note(invoice, reason, credit_type, adjustments, now)
    credit_total = get_quote_grand_total(note, settings)
    original_total = get_quote_grand_total(invoice, settings)

    if credit_total <= 0:
        log_event(
            log,
            "credit_note",
            "Credit note rejected",
            {"invoice_id": invoice.id, "credit_type": credit_type, "grand_total": credit_total},
        )
        raise CreditNoteError("Credit note total must be greater than zero")

    log_event(
        log,
        "credit_note",
        "Credit note created",
        {"invoice_id": invoice.id, "credit_note_id": note.id, "credit_type": credit_type, "grand_total": credit_total},
    )
    return CreditNoteResult(credit_note=note, grand_total=credit_total, original_total=original_total)
