# cli/app.py
# CLI = a thin front-end. All pricing stays in core.

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from core.calculator import calculate_quote_totals, calculate_part_payment, money
from core.models import CalculationOptions, Quote, QuoteTotals
from core.rules import to_optional_number
from core.settings import AccountSettings, load_settings


# ---------- INPUT HELPERS ----------

def ask_float(prompt: str, *, min_value: float | None = None) -> float:
    """Keep asking until a number is entered. Commas group thousands, as on forms."""
    while True:
        value = to_optional_number(input(prompt))
        if value is None:
            print("❌ Enter a number (example: 1,250.50)")
            continue
        if min_value is not None and value < min_value:
            print(f"❌ Value must be >= {min_value}")
            continue
        return value


def ask_yes_no(prompt: str) -> bool:
    while True:
        raw = input(prompt + " (y/n): ").strip().lower()
        if raw in ("y", "yes"):
            return True
        if raw in ("n", "no"):
            return False
        print("❌ Enter y or n")


# ---------- QUOTE FILES ----------

def load_quote(path: Path, settings: Optional[AccountSettings] = None) -> Quote:
    """Fields missing from the file fall back to the account defaults when given."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if settings is not None:
        return settings.new_quote(**raw)
    return Quote.model_validate(raw)


def save_breakdown_json(payload: dict) -> Path:
    """Write the breakdown into data/history/ and return the file path."""
    root = Path(__file__).resolve().parents[1]
    history_dir = root / "data" / "history"
    history_dir.mkdir(parents=True, exist_ok=True)

    ts = payload["meta"]["created_at"].replace(":", "").replace("-", "")
    title = (payload["meta"]["title"] or "quote").strip().lower().replace(" ", "_")
    path = history_dir / f"{ts}_{title}.json"

    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def format_breakdown(quote: Quote, totals: QuoteTotals, settings: AccountSettings) -> list[str]:
    ref = settings.document_ref(quote.reference_number, invoice=quote.is_invoice)
    lines = [
        f"Document:              {ref} {quote.title}".rstrip(),
        f"Materials:             {money(totals.materials_total)}",
        f"Labour:                {money(totals.labour_total)}",
        f"Sections:              {money(totals.sections_total)}",
        f"Subtotal (+{quote.markup_percent:g}%):      {money(totals.client_subtotal)}",
    ]
    if totals.discount_amount:
        label = quote.discount_description or "Discount"
        lines.append(f"{label + ':':<23}-{money(totals.discount_amount)}")
    if totals.tax_amount:
        lines.append(f"VAT ({quote.tax_percent:g}%):             {money(totals.tax_amount)}")
    if totals.cis_amount:
        lines.append(f"CIS ({quote.cis_percent:g}%):             -{money(totals.cis_amount)}")
    lines.append(f"TOTAL:                 {money(totals.grand_total)}")
    return lines


# ---------- MAIN CLI FLOW ----------

def run_cli(quote_path: Optional[str] = None) -> None:
    settings = load_settings()
    print(f"\n=== {settings.company_name or 'Trade Quote Engine'} (CLI) ===\n")

    path = Path(quote_path or input("Quote JSON file: ").strip())
    if not path.is_file():
        print(f"❌ File not found: {path}")
        return
    quote = load_quote(path, settings)

    options = CalculationOptions(
        enable_vat=settings.enable_vat,
        enable_cis=settings.enable_cis,
        default_labour_rate=settings.default_labour_rate,
    )
    display = quote.display_options or settings.default_display_options
    totals = calculate_quote_totals(quote, options, display)

    print("\n--- Breakdown ---")
    for line in format_breakdown(quote, totals, settings):
        print(line)

    due_now = calculate_part_payment(
        totals.grand_total,
        quote.part_payment_enabled,
        quote.part_payment_type,
        quote.part_payment_value,
    )
    if due_now:
        print(f"{(quote.part_payment_label or 'Due now') + ':':<23}{money(due_now)}")
    elif ask_yes_no("Work out a part payment?"):
        pct = ask_float("Percentage due now: ", min_value=0)
        due_now = calculate_part_payment(totals.grand_total, True, "percentage", pct)
        print(f"Due now:               {money(due_now)}")

    print("-----------------\n")

    if ask_yes_no("Save breakdown to history (JSON)?"):
        payload = {
            "meta": {
                "created_at": datetime.now().isoformat(timespec="seconds"),
                "quote_id": quote.id,
                "title": quote.title,
                "source": str(path),
            },
            "totals": totals.model_dump(),
            "due_now": due_now,
        }
        saved = save_breakdown_json(payload)
        print(f"✅ Saved JSON: {saved}\n")


if __name__ == "__main__":
    import sys

    run_cli(sys.argv[1] if len(sys.argv) > 1 else None)
