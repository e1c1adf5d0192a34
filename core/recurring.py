# core/recurring.py
# Recurring invoices: a template invoice carries the schedule, each run copies
# it into a fresh draft invoice and moves the template's next date on.

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel

from .logging_utils import get_logger, log_event
from .models import Quote, RecurringFrequency, gen_id, utc_now

log = get_logger("recurring")

# relativedelta clamps to the last day of a shorter month (Jan 31 -> Feb 28)
_STEPS: dict[str, relativedelta] = {
    "weekly": relativedelta(weeks=1),
    "fortnightly": relativedelta(weeks=2),
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "annually": relativedelta(years=1),
}


class RecurringError(ValueError):
    pass


class RecurringRun(BaseModel):
    invoice: Quote
    template: Quote


def next_recurring_date(current: date, frequency: RecurringFrequency) -> date:
    step = _STEPS.get(frequency)
    if step is None:
        raise RecurringError(f"Unknown recurring frequency: {frequency}")
    return current + step


def preview_recurring_dates(
    start: date,
    frequency: RecurringFrequency,
    end_date: Optional[date] = None,
    count: int = 3,
) -> list[date]:
    """The next `count` run dates after `start`, stopping at the end date."""
    dates: list[date] = []
    current = start
    for _ in range(count):
        current = next_recurring_date(current, frequency)
        if end_date is not None and current > end_date:
            break
        dates.append(current)
    return dates


def generate_next_invoice(
    template: Quote,
    today: Optional[date] = None,
    reference_number: Optional[int] = None,
    now: Optional[datetime] = None,
) -> RecurringRun:
    """Issue the next invoice from `template` and return it with the advanced template.

    The new invoice is a draft linked back through `recurring_parent_id`. Its due
    date keeps the template's gap between issue and due date. Once the following
    run would fall after the end date, the template stops recurring.
    """
    if not template.is_recurring or template.recurring_frequency is None:
        raise RecurringError("Template is not set up as a recurring invoice")

    when = now or utc_now()
    issued = today or when.date()

    due_date = None
    if template.due_date is not None and template.quote_date is not None:
        due_date = issued + (template.due_date - template.quote_date)

    invoice = template.model_copy(
        update={
            "id": gen_id(),
            "type": "invoice",
            "status": "draft",
            "quote_date": issued,
            "due_date": due_date,
            "created_at": when,
            "updated_at": when,
            "reference_number": reference_number,
            "payment_date": None,
            "payment_method": None,
            "amount_paid": 0,
            "share_token": None,
            "accepted_at": None,
            "declined_at": None,
            "is_recurring": False,
            "recurring_frequency": None,
            "recurring_start_date": None,
            "recurring_end_date": None,
            "recurring_next_date": None,
            "recurring_parent_id": template.id,
            "is_credit_note": False,
            "original_invoice_id": None,
            "credit_note_reason": None,
        }
    )

    following = next_recurring_date(template.recurring_next_date or issued, template.recurring_frequency)
    end_date = template.recurring_end_date
    if end_date is None or following <= end_date:
        template_update = {"recurring_next_date": following, "updated_at": when}
    else:
        template_update = {"recurring_next_date": None, "is_recurring": False, "updated_at": when}
    advanced = template.model_copy(update=template_update)

    log_event(
        log,
        "recurring",
        "Recurring invoice generated",
        {
            "template_id": template.id,
            "invoice_id": invoice.id,
            "next_date": advanced.recurring_next_date,
            "still_recurring": advanced.is_recurring,
        },
    )
    return RecurringRun(invoice=invoice, template=advanced)
