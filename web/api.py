from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import Body, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from core.calculator import (
    calculate_part_payment,
    calculate_quote_totals,
    get_quote_grand_total,
    money,
)
from core.credit_notes import CreditNoteResult, create_credit_note
from core.milestones import (
    AllocationStatus,
    PaidProgress,
    allocation_status,
    milestone_amounts,
    paid_progress,
    remaining_allocation,
)
from core.models import (
    CalculationOptions,
    CreditAdjustments,
    CreditType,
    PartPaymentType,
    PaymentMethod,
    PaymentMilestone,
    Quote,
    QuoteDisplayOptions,
    QuoteTotals,
    QuoteTotalSettings,
)
from core.payments import amount_owed, record_payment
from core.recurring import RecurringRun, generate_next_invoice
from core.reporting import JobProfitSummary, job_profit_summary
from core.settings import AccountSettings, load_settings

app = FastAPI(title="Trade Quote Engine API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_settings() -> AccountSettings:
    return load_settings()


# ---------- REQUEST / RESPONSE BODIES ----------

class TotalsRequest(BaseModel):
    quote: Quote
    # both fall back to account settings / the document's own flags
    options: Optional[CalculationOptions] = None
    display_options: Optional[QuoteDisplayOptions] = None


class GrandTotalRequest(BaseModel):
    quote: Quote
    settings: Optional[QuoteTotalSettings] = None


class GrandTotalResponse(BaseModel):
    grand_total: float
    formatted: str


class PartPaymentRequest(BaseModel):
    grand_total: float
    enabled: Optional[bool] = None
    type: Optional[PartPaymentType] = None
    value: Optional[float] = None


class PartPaymentResponse(BaseModel):
    due_now: float
    formatted: str


class MilestonesRequest(BaseModel):
    total: float
    milestones: list[PaymentMilestone] = Field(default_factory=list)
    use_percentage: bool = True


class MilestonesResponse(BaseModel):
    amounts: list[float]
    remaining: float
    allocation: AllocationStatus
    progress: PaidProgress


class CreditNoteRequest(BaseModel):
    invoice: Quote
    reason: str = ""
    credit_type: CreditType = "full"
    adjustments: Optional[CreditAdjustments] = None


class PaymentRequest(BaseModel):
    quote: Quote
    amount: float
    method: PaymentMethod
    mark_as_paid: bool = True


class PaymentResponse(BaseModel):
    quote: Quote
    amount_owed: float


class RecurringRequest(BaseModel):
    template: Quote
    today: Optional[date] = None
    reference_number: Optional[int] = None


class ProfitRequest(BaseModel):
    quotes: list[Quote] = Field(default_factory=list)
    expenses: list[float] = Field(default_factory=list)


# ---------- ENDPOINTS ----------

@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/totals", response_model=QuoteTotals)
def totals(
    req: TotalsRequest = Body(...),
    settings: AccountSettings = Depends(get_settings),
) -> QuoteTotals:
    """Full totals breakdown for one document."""
    options = req.options or CalculationOptions(
        enable_vat=settings.enable_vat,
        enable_cis=settings.enable_cis,
        default_labour_rate=settings.default_labour_rate,
    )
    display = req.display_options or req.quote.display_options or settings.default_display_options
    return calculate_quote_totals(req.quote, options, display)


@app.post("/grand-total", response_model=GrandTotalResponse)
def grand_total(
    req: GrandTotalRequest = Body(...),
    settings: AccountSettings = Depends(get_settings),
) -> GrandTotalResponse:
    total = get_quote_grand_total(req.quote, req.settings or settings.totals())
    return GrandTotalResponse(grand_total=total, formatted=money(total))


@app.post("/part-payment", response_model=PartPaymentResponse)
def part_payment(req: PartPaymentRequest = Body(...)) -> PartPaymentResponse:
    due = calculate_part_payment(req.grand_total, req.enabled, req.type, req.value)
    return PartPaymentResponse(due_now=due, formatted=money(due))


@app.post("/milestones", response_model=MilestonesResponse)
def milestones(req: MilestonesRequest = Body(...)) -> MilestonesResponse:
    return MilestonesResponse(
        amounts=milestone_amounts(req.milestones, req.total),
        remaining=remaining_allocation(req.milestones, req.total, use_percentage=req.use_percentage),
        allocation=allocation_status(req.milestones, req.total, use_percentage=req.use_percentage),
        progress=paid_progress(req.milestones, req.total),
    )


@app.post("/credit-notes", response_model=CreditNoteResult)
def credit_notes(
    req: CreditNoteRequest = Body(...),
    settings: AccountSettings = Depends(get_settings),
) -> CreditNoteResult:
    """Issue a credit note; non-positive totals come back as 400."""
    try:
        return create_credit_note(
            req.invoice,
            req.reason,
            settings.totals(),
            credit_type=req.credit_type,
            adjustments=req.adjustments,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/payments", response_model=PaymentResponse)
def payments(
    req: PaymentRequest = Body(...),
    settings: AccountSettings = Depends(get_settings),
) -> PaymentResponse:
    try:
        updated = record_payment(
            req.quote, settings.totals(), req.amount, req.method, mark_as_paid=req.mark_as_paid
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PaymentResponse(quote=updated, amount_owed=amount_owed(updated, settings.totals()))


@app.post("/reports/profit", response_model=JobProfitSummary)
def profit_report(
    req: ProfitRequest = Body(...),
    settings: AccountSettings = Depends(get_settings),
) -> JobProfitSummary:
    return job_profit_summary(req.quotes, req.expenses, settings.totals())


@app.post("/recurring/next", response_model=RecurringRun)
def recurring_next(req: RecurringRequest = Body(...)) -> RecurringRun:
    """Issue the next invoice from a recurring template."""
    try:
        return generate_next_invoice(req.template, req.today, req.reference_number)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
