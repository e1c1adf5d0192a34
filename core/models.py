from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .rules import to_number, to_optional_number

DiscountType = Literal["percentage", "fixed"]
PartPaymentType = Literal["percentage", "fixed"]
QuoteStatus = Literal["draft", "sent", "accepted", "declined", "invoiced", "paid"]
QuoteType = Literal["estimate", "quotation", "invoice"]
PaymentMethod = Literal["cash", "card", "bank_transfer", "cheque"]
MilestoneStatus = Literal["pending", "invoiced", "paid"]
RecurringFrequency = Literal["weekly", "fortnightly", "monthly", "quarterly", "annually"]
CreditType = Literal["full", "partial"]


def gen_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _Record(BaseModel):
    # records are never mutated in place: use model_copy(update=...)
    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------- LINE ITEMS ----------

class MaterialItem(_Record):
    id: str = Field(default_factory=gen_id)
    name: str = ""
    description: str = ""
    quantity: float = Field(default=0, ge=0)
    unit: str = ""
    unit_price: float = Field(default=0, ge=0)

    # divider row inside a section, never priced
    is_heading: bool = False
    # provenance only
    is_ai_proposed: bool = False

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def _blank_to_zero(cls, v: Any) -> float:
        return to_number(v)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_price(self) -> float:
        """Extended price, always quantity x unit price."""
        if self.is_heading:
            return 0.0
        return self.quantity * self.unit_price


class LabourItem(_Record):
    id: str = Field(default_factory=gen_id)
    description: str = ""
    hours: float = Field(default=0, ge=0)
    rate: Optional[float] = Field(default=None, ge=0)

    @field_validator("hours", mode="before")
    @classmethod
    def _blank_hours(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("rate", mode="before")
    @classmethod
    def _blank_rate(cls, v: Any) -> Optional[float]:
        return to_optional_number(v)


class QuoteSection(_Record):
    id: str = Field(default_factory=gen_id)
    title: str = ""
    items: list[MaterialItem] = Field(default_factory=list)
    labour_items: list[LabourItem] = Field(default_factory=list)

    # legacy flat hours, only used when there are no labour items
    labour_hours: float = Field(default=0, ge=0)
    labour_cost: Optional[float] = None
    labour_rate: Optional[float] = Field(default=None, ge=0)

    # manual override: None means unset, 0 is a real price
    subsection_price: Optional[float] = None

    @field_validator("labour_hours", mode="before")
    @classmethod
    def _blank_hours(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("labour_cost", "labour_rate", "subsection_price", mode="before")
    @classmethod
    def _blank_overrides(cls, v: Any) -> Optional[float]:
        return to_optional_number(v)


class SectionPrice(_Record):
    """Tagged section value.

    `value` is what document totals sum; `computed` is always materials + labour
    so reporting can still see it when the display uses an override.
    """

    kind: Literal["computed", "overridden"]
    value: float
    computed: float

    @property
    def is_overridden(self) -> bool:
        return self.kind == "overridden"


# ---------- DISPLAY / SETTINGS ----------

class QuoteDisplayOptions(_Record):
    # materials presentation
    show_materials: bool = True
    show_material_items: bool = True
    show_material_qty: bool = True
    show_material_unit_price: bool = True
    show_material_line_totals: bool = True
    show_material_section_total: bool = True

    # labour presentation
    show_labour: bool = True
    show_labour_items: bool = True
    show_labour_qty: bool = True
    show_labour_unit_price: bool = True
    show_labour_line_totals: bool = True
    show_labour_section_total: bool = True

    # general & tax
    show_vat: bool = True
    show_cis: bool = True
    show_notes: bool = True
    show_logo: bool = True
    show_totals_breakdown: bool = True


class CalculationOptions(_Record):
    enable_vat: bool = False
    enable_cis: bool = False
    show_vat: bool = True
    show_cis: bool = True
    default_labour_rate: float = Field(default=0, ge=0)


class QuoteTotalSettings(_Record):
    """Account toggles needed by the grand-total helper."""

    enable_vat: bool = False
    enable_cis: bool = False
    default_labour_rate: float = Field(default=0, ge=0)

    def calculation_options(self) -> CalculationOptions:
        return CalculationOptions(
            enable_vat=self.enable_vat,
            enable_cis=self.enable_cis,
            show_vat=self.enable_vat,
            show_cis=self.enable_cis,
            default_labour_rate=self.default_labour_rate,
        )

    def display_options(self) -> QuoteDisplayOptions:
        return QuoteDisplayOptions(show_vat=self.enable_vat, show_cis=self.enable_cis)


# ---------- DOCUMENT ----------

class Quote(_Record):
    id: str = Field(default_factory=gen_id)
    customer_id: str = ""
    project_id: Optional[str] = None
    title: str = ""
    quote_date: Optional[date] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    sections: list[QuoteSection] = Field(default_factory=list)

    # document-wide default rate; account default applies when unset
    labour_rate: Optional[float] = Field(default=None, ge=0)
    markup_percent: float = 0
    tax_percent: float = 0
    cis_percent: float = 0

    status: QuoteStatus = "draft"
    notes: str = ""
    type: QuoteType = "quotation"
    display_options: Optional[QuoteDisplayOptions] = None
    reference_number: Optional[int] = None

    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = None
    discount_description: Optional[str] = None

    part_payment_enabled: bool = False
    part_payment_type: Optional[PartPaymentType] = None
    part_payment_value: Optional[float] = None
    part_payment_label: Optional[str] = None

    # invoice-specific
    due_date: Optional[date] = None
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    amount_paid: float = 0
    parent_quote_id: Optional[str] = None

    # sharing
    share_token: Optional[str] = None
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None

    # recurring invoices
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    recurring_start_date: Optional[date] = None
    recurring_end_date: Optional[date] = None
    recurring_next_date: Optional[date] = None
    recurring_parent_id: Optional[str] = None

    # credit notes
    is_credit_note: bool = False
    original_invoice_id: Optional[str] = None
    credit_note_reason: Optional[str] = None

    @field_validator("markup_percent", "tax_percent", "cis_percent", "amount_paid", mode="before")
    @classmethod
    def _blank_to_zero(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("labour_rate", "discount_value", "part_payment_value", mode="before")
    @classmethod
    def _blank_optional(cls, v: Any) -> Optional[float]:
        return to_optional_number(v)

    @field_validator("discount_type", "part_payment_type", mode="before")
    @classmethod
    def _blank_type(cls, v: Any) -> Any:
        return v or None

    @property
    def is_invoice(self) -> bool:
        return self.type == "invoice"


class PaymentMilestone(_Record):
    id: str = Field(default_factory=gen_id)
    label: str = ""
    percentage: Optional[float] = None
    fixed_amount: Optional[float] = None
    due_date: Optional[date] = None
    status: MilestoneStatus = "pending"
    invoice_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    @field_validator("percentage", "fixed_amount", mode="before")
    @classmethod
    def _blank_optional(cls, v: Any) -> Optional[float]:
        return to_optional_number(v)


# ---------- RESULTS ----------

class QuoteTotals(_Record):
    materials_total: float = 0.0
    labour_total: float = 0.0
    sections_total: float = 0.0
    client_subtotal: float = 0.0
    discount_amount: float = 0.0
    after_discount: float = 0.0
    tax_amount: float = 0.0
    cis_amount: float = 0.0
    grand_total: float = 0.0


class CreditAdjustments(_Record):
    """Caller-supplied reductions for a partial credit note, keyed by section id."""

    item_quantities: dict[str, dict[str, float]] = Field(default_factory=dict)
    labour_hours: dict[str, float] = Field(default_factory=dict)
    labour_item_hours: dict[str, dict[str, float]] = Field(default_factory=dict)
