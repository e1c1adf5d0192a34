from __future__ import annotations

from typing import Optional

from .models import (
    CalculationOptions,
    DiscountType,
    PartPaymentType,
    Quote,
    QuoteDisplayOptions,
    QuoteSection,
    QuoteTotals,
    QuoteTotalSettings,
    SectionPrice,
)
from .rules import effective_labour_rate, first_present, labour_cost_chain


def money(x: float) -> str:
    """GBP display format. Display only: never feed the result back into maths."""
    amount = round(float(x) + (1e-9 if x >= 0 else -1e-9), 2)
    if amount < 0:
        return f"-£{-amount:,.2f}"
    return f"£{amount:,.2f}"


# ---------- SECTION LEVEL ----------

def calculate_section_labour(
    section: QuoteSection,
    document_labour_rate: Optional[float],
    default_labour_rate: float,
) -> float:
    """Labour cost: itemised labour -> direct labour cost -> hours x effective rate."""
    rate = effective_labour_rate(None, section.labour_rate, document_labour_rate, default_labour_rate)
    return first_present(*labour_cost_chain(section, rate)) or 0.0


def calculate_section_materials(section: QuoteSection) -> float:
    """Sum of extended prices, headings excluded."""
    return sum(item.total_price for item in section.items if not item.is_heading)


def resolve_section_price(
    section: QuoteSection, materials_total: float, labour_total: float
) -> SectionPrice:
    computed = materials_total + labour_total
    if section.subsection_price is not None:
        return SectionPrice(kind="overridden", value=section.subsection_price, computed=computed)
    return SectionPrice(kind="computed", value=computed, computed=computed)


def calculate_section_price(
    section: QuoteSection, materials_total: float, labour_total: float
) -> float:
    return resolve_section_price(section, materials_total, labour_total).value


# ---------- DISCOUNT / TAX / DEDUCTION ----------

def calculate_discount(
    subtotal: float,
    discount_type: Optional[DiscountType] = None,
    discount_value: Optional[float] = None,
) -> float:
    """Percentage of the subtotal, or a fixed amount taken verbatim.

    No value means no discount; a value with no type counts as fixed.

    A fixed discount is not clamped to the subtotal, so the discounted amount
    can go negative.
    """
    if not discount_value:
        return 0.0
    if discount_type == "percentage":
        return subtotal * (discount_value / 100)
    return float(discount_value)


def calculate_vat(
    after_discount: float,
    tax_percent: Optional[float],
    *,
    enable_vat: bool,
    show_vat: bool,
) -> float:
    # VAT base: marked-up selling price after discount
    if not enable_vat or not show_vat:
        return 0.0
    return after_discount * ((tax_percent or 0) / 100)


def calculate_cis(
    labour_total: float,
    cis_percent: Optional[float],
    *,
    enable_cis: bool,
    show_cis: bool,
) -> float:
    # CIS base: raw labour cost, before markup and discount
    if not enable_cis or not show_cis:
        return 0.0
    return labour_total * ((cis_percent or 0) / 100)


def calculate_part_payment(
    grand_total: float,
    enabled: Optional[bool] = None,
    type: Optional[PartPaymentType] = None,
    value: Optional[float] = None,
) -> float:
    """Amount due now. Disabled or no value -> 0; anything but percentage is fixed."""
    if not enabled or not value:
        return 0.0
    if type == "percentage":
        return grand_total * (value / 100)
    return float(value)


# ---------- DOCUMENT LEVEL ----------

def calculate_quote_totals(
    quote: Quote,
    options: CalculationOptions,
    display_options: Optional[QuoteDisplayOptions] = None,
) -> QuoteTotals:
    """Full breakdown, in fixed order.

    sections -> markup -> discount -> VAT on the discounted price,
    CIS on raw labour, then grand total. Nothing is rounded here.
    """
    display = display_options or quote.display_options or QuoteDisplayOptions()

    materials_total = 0.0
    labour_total = 0.0
    sections_total = 0.0

    for section in quote.sections:
        section_materials = calculate_section_materials(section)
        section_labour = calculate_section_labour(
            section, quote.labour_rate, options.default_labour_rate
        )
        price = resolve_section_price(section, section_materials, section_labour)

        # reporting totals stay computed even under an override
        materials_total += section_materials
        labour_total += section_labour
        sections_total += price.value

    client_subtotal = sections_total * (1 + (quote.markup_percent or 0) / 100)

    discount_amount = calculate_discount(
        client_subtotal, quote.discount_type, quote.discount_value
    )
    after_discount = client_subtotal - discount_amount

    tax_amount = calculate_vat(
        after_discount,
        quote.tax_percent,
        enable_vat=options.enable_vat,
        show_vat=display.show_vat,
    )
    cis_amount = calculate_cis(
        labour_total,
        quote.cis_percent,
        enable_cis=options.enable_cis,
        show_cis=display.show_cis,
    )

    grand_total = (after_discount + tax_amount) - cis_amount

    return QuoteTotals(
        materials_total=materials_total,
        labour_total=labour_total,
        sections_total=sections_total,
        client_subtotal=client_subtotal,
        discount_amount=discount_amount,
        after_discount=after_discount,
        tax_amount=tax_amount,
        cis_amount=cis_amount,
        grand_total=grand_total,
    )


def get_quote_grand_total(quote: Quote, settings: QuoteTotalSettings) -> float:
    """Grand total only, for list views. Display flags follow the account toggles."""
    totals = calculate_quote_totals(
        quote, settings.calculation_options(), settings.display_options()
    )
    return totals.grand_total


def quote_due_now(quote: Quote, settings: QuoteTotalSettings) -> float:
    """Part payment requested by the document's own configuration."""
    return calculate_part_payment(
        get_quote_grand_total(quote, settings),
        quote.part_payment_enabled,
        quote.part_payment_type,
        quote.part_payment_value,
    )
