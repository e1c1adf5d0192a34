# core/settings.py
# Account-level settings. Loaded once from JSON and passed explicitly into
# every calculation; the engine never reads them from global state.

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import Quote, QuoteDisplayOptions, QuoteTotalSettings

SETTINGS_ENV_VAR = "TRADEQUOTE_SETTINGS"
DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parents[1] / "data" / "settings.json"


class AccountSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    company_name: str = ""
    default_labour_rate: float = Field(default=0, ge=0)
    default_tax_rate: float = Field(default=20, ge=0)
    default_cis_rate: float = Field(default=20, ge=0)

    is_vat_registered: bool = False
    enable_vat: bool = False
    enable_cis: bool = False

    quote_prefix: str = "EST-"
    invoice_prefix: str = "INV-"
    default_display_options: QuoteDisplayOptions = Field(default_factory=QuoteDisplayOptions)

    def totals(self) -> QuoteTotalSettings:
        """Just the toggles the calculator needs."""
        return QuoteTotalSettings(
            enable_vat=self.enable_vat,
            enable_cis=self.enable_cis,
            default_labour_rate=self.default_labour_rate,
        )

    def quote_defaults(self) -> dict[str, Any]:
        """Rates a new document starts from. VAT is 0 unless the account is registered."""
        return {
            "labour_rate": self.default_labour_rate,
            "tax_percent": self.default_tax_rate if self.is_vat_registered else 0,
            "cis_percent": self.default_cis_rate,
            "display_options": self.default_display_options,
        }

    def new_quote(self, **fields: Any) -> Quote:
        """Build a document from the account defaults; explicit fields win."""
        return Quote.model_validate({**self.quote_defaults(), **fields})

    def document_ref(self, reference_number: Optional[int], *, invoice: bool) -> str:
        prefix = self.invoice_prefix if invoice else self.quote_prefix
        return f"{prefix}{(reference_number or 1):04d}"


def settings_path() -> Path:
    env_path = os.environ.get(SETTINGS_ENV_VAR)
    return Path(env_path) if env_path else DEFAULT_SETTINGS_PATH


def load_settings(path: Optional[str | Path] = None) -> AccountSettings:
    """Read settings JSON; a missing file gives the defaults."""
    p = Path(path) if path else settings_path()
    if not p.is_file():
        return AccountSettings()
    raw = json.loads(p.read_text(encoding="utf-8"))
    return AccountSettings.model_validate(raw)
