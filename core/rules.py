# core/rules.py
# Precedence chains and form-value normalisation shared by the calculator.

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from .models import QuoteSection

Resolver = Callable[[], Optional[float]]


# ---------- NORMALISATION ----------

def to_number(value: Any, default: float = 0.0) -> float:
    """Form value -> float. None, blanks, junk and NaN become `default`."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", "").replace("£", "")
        if value == "":
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return number


def to_optional_number(value: Any) -> Optional[float]:
    """Like to_number, but an absent value stays absent (None)."""
    number = to_number(value, default=math.nan)
    return None if math.isnan(number) else number


# ---------- FALLBACK CHAINS ----------

def first_present(*resolvers: Resolver) -> Optional[float]:
    """Evaluate resolvers in order; first non-None result wins."""
    for resolve in resolvers:
        value = resolve()
        if value is not None:
            return value
    return None


def effective_labour_rate(
    item_rate: Optional[float],
    section_rate: Optional[float],
    document_rate: Optional[float],
    default_rate: float,
) -> float:
    """item -> section -> document -> account default. Zero counts as set."""
    rate = first_present(
        lambda: item_rate,
        lambda: section_rate,
        lambda: document_rate,
        lambda: default_rate,
    )
    return rate or 0.0


def labour_cost_chain(section: "QuoteSection", rate: float) -> list[Resolver]:
    """Labour cost sources for one section, highest precedence first.

    `rate` is the section's effective rate (section -> document -> default);
    itemised labour applies each item's own rate on top of it.
    """

    def itemised() -> Optional[float]:
        if not section.labour_items:
            return None
        return sum(
            item.hours * effective_labour_rate(item.rate, rate, None, 0.0)
            for item in section.labour_items
        )

    def direct() -> Optional[float]:
        return section.labour_cost

    def by_hours() -> Optional[float]:
        return (section.labour_hours or 0) * rate

    return [itemised, direct, by_hours]
