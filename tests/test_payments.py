from datetime import date

import pytest

from core.lifecycle import LifecycleError, advance_status, can_transition
from core.payments import PaymentError, amount_owed, record_payment
from core.reporting import job_profit_summary
from core.models import QuoteDisplayOptions, QuoteTotalSettings


# ---------- payments ----------

def test_amount_owed_subtracts_amount_paid(kitchen_invoice, vat_settings):
    part_paid = kitchen_invoice.model_copy(update={"amount_paid": 100})
    assert amount_owed(part_paid, vat_settings) == pytest.approx(111.2)


def test_part_payment_keeps_invoice_open(kitchen_invoice, vat_settings):
    updated = record_payment(kitchen_invoice, vat_settings, 100, "bank_transfer", paid_on=date(2026, 2, 1))
    assert updated.amount_paid == 100
    assert updated.status == "invoiced"
    assert updated.payment_method == "bank_transfer"
    assert updated.payment_date == date(2026, 2, 1)


def test_settling_payment_marks_paid(kitchen_invoice, vat_settings):
    first = record_payment(kitchen_invoice, vat_settings, 100, "card")
    second = record_payment(first, vat_settings, 111.2, "card")
    assert second.status == "paid"
    assert second.amount_paid == pytest.approx(211.2)
    assert amount_owed(second, vat_settings) == pytest.approx(0)


def test_full_payment_without_mark_as_paid(kitchen_invoice, vat_settings):
    updated = record_payment(kitchen_invoice, vat_settings, 500, "cash", mark_as_paid=False)
    assert updated.status == "invoiced"


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_payment_rejected(kitchen_invoice, vat_settings, amount):
    with pytest.raises(PaymentError):
        record_payment(kitchen_invoice, vat_settings, amount, "cash")


# ---------- lifecycle ----------

def test_happy_path_lifecycle(kitchen_quote):
    q = advance_status(kitchen_quote, "sent")
    q = advance_status(q, "accepted")
    assert q.accepted_at is not None
    q = advance_status(q, "invoiced")
    assert q.type == "invoice"
    q = advance_status(q, "paid")
    assert q.status == "paid"


def test_declined_is_terminal(kitchen_quote):
    declined = advance_status(advance_status(kitchen_quote, "sent"), "declined")
    assert declined.declined_at is not None
    assert not can_transition("declined", "accepted")
    with pytest.raises(LifecycleError):
        advance_status(declined, "accepted")


def test_cannot_skip_states(kitchen_quote):
    with pytest.raises(LifecycleError):
        advance_status(kitchen_quote, "paid")


# ---------- reporting ----------

def test_job_profit_summary(kitchen_quote, kitchen_invoice):
    settings = QuoteTotalSettings(enable_vat=True)
    summary = job_profit_summary([kitchen_quote, kitchen_invoice], [100.0, 22.4], settings)
    assert summary.total_quoted == pytest.approx(422.4)
    assert summary.total_labour == pytest.approx(160)
    assert summary.total_materials == pytest.approx(160)
    assert summary.total_expenses == pytest.approx(122.4)
    assert summary.profit == pytest.approx(300)
    assert summary.margin_percent == pytest.approx(300 / 422.4 * 100)


def test_profit_summary_with_nothing_quoted():
    summary = job_profit_summary([], [50.0], QuoteTotalSettings())
    assert summary.profit == -50
    assert summary.margin_percent == 0


def test_profit_summary_respects_document_display_flags(kitchen_quote):
    hidden_vat = kitchen_quote.model_copy(
        update={"display_options": QuoteDisplayOptions(show_vat=False)}
    )
    summary = job_profit_summary([hidden_vat], [], QuoteTotalSettings(enable_vat=True))
    assert summary.total_quoted == pytest.approx(176)


def test_profit_summary_leaves_cis_out_by_default(kitchen_quote):
    settings = QuoteTotalSettings(enable_vat=True, enable_cis=True)
    summary = job_profit_summary([kitchen_quote], [], settings)
    assert summary.total_quoted == pytest.approx(211.2)


def test_profit_summary_applies_cis_when_document_shows_it(kitchen_quote):
    shows_cis = kitchen_quote.model_copy(
        update={"display_options": QuoteDisplayOptions(show_cis=True)}
    )
    settings = QuoteTotalSettings(enable_vat=True, enable_cis=True)
    summary = job_profit_summary([shows_cis], [], settings)
    assert summary.total_quoted == pytest.approx(195.2)
