# tests/conftest.py
# Shared documents for the engine tests. The kitchen section is the worked
# example: materials 80, labour 2h @ 40 = 80, markup 10%, VAT 20%, CIS 20%.

from __future__ import annotations

import pytest

from core.models import MaterialItem, Quote, QuoteSection, QuoteTotalSettings


@pytest.fixture()
def kitchen_section() -> QuoteSection:
    return QuoteSection(
        id="sec-kitchen",
        title="Kitchen Rewire",
        items=[
            MaterialItem(id="itm-cable", name="Cable", quantity=3, unit="coil", unit_price=10),
            MaterialItem(id="itm-cu", name="Consumer unit", quantity=1, unit="each", unit_price=50),
        ],
        labour_hours=2,
    )


@pytest.fixture()
def kitchen_quote(kitchen_section) -> Quote:
    return Quote(
        id="quote-1",
        customer_id="cust-1",
        title="Kitchen",
        sections=[kitchen_section],
        labour_rate=40,
        markup_percent=10,
        tax_percent=20,
        cis_percent=20,
    )


@pytest.fixture()
def kitchen_invoice(kitchen_quote) -> Quote:
    return kitchen_quote.model_copy(
        update={
            "id": "inv-1",
            "type": "invoice",
            "status": "invoiced",
            "reference_number": 7,
            "share_token": "tok-123",
            "is_recurring": True,
            "recurring_frequency": "monthly",
            "recurring_parent_id": "rec-1",
        }
    )


@pytest.fixture()
def vat_settings() -> QuoteTotalSettings:
    return QuoteTotalSettings(enable_vat=True, enable_cis=False, default_labour_rate=0)
