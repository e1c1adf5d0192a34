from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel

from .calculator import calculate_quote_totals
from .models import Quote, QuoteDisplayOptions, QuoteTotalSettings


class JobProfitSummary(BaseModel):
    total_quoted: float
    total_labour: float
    total_materials: float
    total_expenses: float
    profit: float
    margin_percent: float


# profit reports show VAT but leave CIS out unless a document switches it on
_REPORT_DISPLAY = QuoteDisplayOptions(show_vat=True, show_cis=False)


def report_display_options(quote: Quote) -> QuoteDisplayOptions:
    """Report defaults overlaid with the flags the document set explicitly."""
    if quote.display_options is None:
        return _REPORT_DISPLAY
    return _REPORT_DISPLAY.model_copy(
        update=quote.display_options.model_dump(exclude_unset=True)
    )


def job_profit_summary(
    quotes: Iterable[Quote],
    expenses: Iterable[float],
    settings: QuoteTotalSettings,
) -> JobProfitSummary:
    """Profit = total quoted - expenses (expense amounts already include their VAT)."""
    options = settings.calculation_options()

    total_quoted = 0.0
    total_labour = 0.0
    total_materials = 0.0
    for quote in quotes:
        totals = calculate_quote_totals(quote, options, report_display_options(quote))
        total_quoted += totals.grand_total
        total_labour += totals.labour_total
        total_materials += totals.materials_total

    total_expenses = sum(expenses)
    profit = total_quoted - total_expenses
    return JobProfitSummary(
        total_quoted=total_quoted,
        total_labour=total_labour,
        total_materials=total_materials,
        total_expenses=total_expenses,
        profit=profit,
        margin_percent=(profit / total_quoted * 100) if total_quoted > 0 else 0.0,
    )
