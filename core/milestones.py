from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel

from .models import PaymentMilestone, utc_now

# allocation is considered complete within a penny / hundredth of a percent
ALLOCATION_TOLERANCE = 0.01


class MilestoneError(ValueError):
    pass


class AllocationStatus(BaseModel):
    allocated: float
    target: float
    adds_up: bool


class PaidProgress(BaseModel):
    paid_count: int
    milestone_count: int
    paid_amount: float
    paid_percent: float


def milestone_amount(milestone: PaymentMilestone, total: float) -> float:
    """fixed_amount if set, else percentage of the *current* document total."""
    if milestone.fixed_amount:
        return milestone.fixed_amount
    if milestone.percentage:
        return milestone.percentage / 100 * total
    return 0.0


def milestone_amounts(milestones: Iterable[PaymentMilestone], total: float) -> list[float]:
    return [milestone_amount(m, total) for m in milestones]


def remaining_allocation(
    milestones: Iterable[PaymentMilestone], total: float, *, use_percentage: bool
) -> float:
    """What a newly added milestone should prefill with (never negative)."""
    milestones = list(milestones)
    if use_percentage:
        remaining = 100 - sum(m.percentage or 0 for m in milestones)
    else:
        remaining = total - sum(m.fixed_amount or 0 for m in milestones)
    return max(0.0, remaining)


def allocation_status(
    milestones: Iterable[PaymentMilestone], total: float, *, use_percentage: bool
) -> AllocationStatus:
    """Whether the plan adds up. Informational: under/over-allocation is allowed."""
    milestones = list(milestones)
    if use_percentage:
        allocated = sum(m.percentage or 0 for m in milestones)
        target = 100.0
    else:
        allocated = sum(m.fixed_amount or 0 for m in milestones)
        target = total
    return AllocationStatus(
        allocated=allocated,
        target=target,
        adds_up=abs(allocated - target) < ALLOCATION_TOLERANCE,
    )


def paid_progress(milestones: Iterable[PaymentMilestone], total: float) -> PaidProgress:
    milestones = list(milestones)
    paid = [m for m in milestones if m.status == "paid"]
    paid_amount = sum(milestone_amount(m, total) for m in paid)
    return PaidProgress(
        paid_count=len(paid),
        milestone_count=len(milestones),
        paid_amount=paid_amount,
        paid_percent=(paid_amount / total * 100) if total > 0 else 0.0,
    )


# ---------- STATUS ----------

def mark_milestone_invoiced(milestone: PaymentMilestone, invoice_id: str) -> PaymentMilestone:
    if milestone.status != "pending":
        raise MilestoneError(f"Milestone '{milestone.label}' is {milestone.status}, expected pending")
    if not invoice_id:
        raise MilestoneError("An invoice id is required to invoice a milestone")
    return milestone.model_copy(update={"status": "invoiced", "invoice_id": invoice_id})


def mark_milestone_paid(
    milestone: PaymentMilestone, paid_at: Optional[datetime] = None
) -> PaymentMilestone:
    if milestone.status != "invoiced":
        raise MilestoneError(f"Milestone '{milestone.label}' is {milestone.status}, expected invoiced")
    return milestone.model_copy(update={"status": "paid", "paid_at": paid_at or utc_now()})
