"""Quick runtime checks for the quote engine.
Run: python scripts/quickcheck.py
Exits with code 0 on success, non-zero on failure.
"""
from core.calculator import calculate_part_payment, calculate_quote_totals
from core.models import CalculationOptions, MaterialItem, Quote, QuoteSection


def approx(a, b, tol=1e-6):
    return abs(a - b) <= tol


def main():
    quote = Quote(
        labour_rate=40,
        markup_percent=10,
        tax_percent=20,
        cis_percent=20,
        sections=[
            QuoteSection(
                title="Kitchen Rewire",
                items=[
                    MaterialItem(name="Cable", quantity=3, unit_price=10),
                    MaterialItem(name="Consumer unit", quantity=1, unit_price=50),
                ],
                labour_hours=2,
            )
        ],
    )

    res = calculate_quote_totals(quote, CalculationOptions(enable_vat=True))

    assert approx(res.materials_total, 80.0)
    assert approx(res.labour_total, 80.0)
    assert approx(res.sections_total, 160.0)
    assert approx(res.client_subtotal, 176.0)
    assert approx(res.tax_amount, 35.2)
    assert approx(res.grand_total, 211.2)

    with_cis = calculate_quote_totals(quote, CalculationOptions(enable_vat=True, enable_cis=True))
    assert approx(with_cis.cis_amount, 16.0)
    assert approx(with_cis.grand_total, 195.2)

    assert calculate_part_payment(200, True, "percentage", 50) == 100.0

    print("Quickcheck OK")


if __name__ == '__main__':
    main()
