from __future__ import annotations

from datetime import date
from typing import Optional

from .calculator import get_quote_grand_total
from .logging_utils import get_logger, log_event
from .models import PaymentMethod, Quote, QuoteTotalSettings, utc_now

log = get_logger("payments")

# a payment within half a penny of the balance settles it
SETTLE_TOLERANCE = 0.005


class PaymentError(ValueError):
    pass


def amount_owed(quote: Quote, settings: QuoteTotalSettings) -> float:
    """Grand total less whatever has already been paid."""
    return get_quote_grand_total(quote, settings) - (quote.amount_paid or 0)


def record_payment(
    quote: Quote,
    settings: QuoteTotalSettings,
    amount: float,
    method: PaymentMethod,
    *,
    mark_as_paid: bool = True,
    paid_on: Optional[date] = None,
) -> Quote:
    """Add a payment to an invoice.

    The document only becomes `paid` when `mark_as_paid` is set and the payment
    covers everything still owed; otherwise it is a part payment.
    """
    if amount is None or amount <= 0:
        raise PaymentError("Payment amount must be greater than zero")
    if quote.is_credit_note:
        raise PaymentError("Payments cannot be recorded against a credit note")

    owed = amount_owed(quote, settings)
    settles = mark_as_paid and amount >= owed - SETTLE_TOLERANCE

    update: dict = {
        "amount_paid": (quote.amount_paid or 0) + amount,
        "payment_method": method,
        "payment_date": paid_on or date.today(),
        "updated_at": utc_now(),
    }
    if settles:
        update["status"] = "paid"

    log_event(
        log,
        "payment",
        "Payment recorded",
        {"quote_id": quote.id, "amount": amount, "owed": owed, "settled": settles},
    )
    return quote.model_copy(update=update)
