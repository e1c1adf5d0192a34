# core/lifecycle.py
# Document status machine: draft -> sent -> accepted/declined,
# accepted -> invoiced -> paid. Declined and paid are terminal.

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .logging_utils import get_logger, log_event
from .models import Quote, QuoteStatus, utc_now

log = get_logger("lifecycle")

STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    "draft": frozenset({"sent"}),
    "sent": frozenset({"accepted", "declined"}),
    "accepted": frozenset({"invoiced"}),
    "declined": frozenset(),
    "invoiced": frozenset({"paid"}),
    "paid": frozenset(),
}


class LifecycleError(ValueError):
    pass


def can_transition(current: str, target: str) -> bool:
    return target in STATUS_TRANSITIONS.get(current, frozenset())


def advance_status(quote: Quote, status: QuoteStatus, at: Optional[datetime] = None) -> Quote:
    """Return a copy of `quote` moved to `status`; illegal moves raise LifecycleError."""
    if quote.is_credit_note:
        raise LifecycleError("Credit notes cannot be edited after creation")
    if not can_transition(quote.status, status):
        raise LifecycleError(f"Cannot move a {quote.status} document to {status}")

    when = at or utc_now()
    update: dict = {"status": status, "updated_at": when}
    if status == "accepted":
        update["accepted_at"] = when
    elif status == "declined":
        update["declined_at"] = when
    elif status == "invoiced":
        update["type"] = "invoice"

    log_event(log, "status", "Document status changed", {"quote_id": quote.id, "from": quote.status, "to": status})
    return quote.model_copy(update=update)
