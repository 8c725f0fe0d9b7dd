"""Sales-tax codes and the rate table used by worksheets and cost lines."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "config" / "tax_rates.yml"


class TaxCode(StrEnum):
    HST = "HST"
    RST = "RST"
    GST = "GST"
    PST = "PST"
    QST = "QST"
    EXEMPT = "Exempt"


# Percent of the taxable amount
_TAX_RATES: dict[str, float] = {
    TaxCode.HST: 13.0,
    TaxCode.RST: 8.0,
    TaxCode.GST: 5.0,
    TaxCode.PST: 6.0,
    TaxCode.QST: 9.975,
    TaxCode.EXEMPT: 0.0,
}


class TaxRateTable:
    """Maps tax codes to fractional rates.

    Rates come from ``config/tax_rates.yml`` when present (``rates:`` mapping of
    code to percent), otherwise from the built-in provincial defaults.
    """

    def __init__(
        self,
        rates: dict[str, float] | None = None,
        config_path: str | Path | None = None,
    ) -> None:
        if rates is not None:
            self._rates = {str(k): float(v) for k, v in rates.items()}
        else:
            path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
            if not path.is_absolute():
                path = _PROJECT_ROOT / path
            self._rates = self._load(path)
        self._lookup = {code.lower(): code for code in self._rates}

    @staticmethod
    def _load(path: Path) -> dict[str, float]:
        if not path.exists():
            return {str(k): v for k, v in _TAX_RATES.items()}
        with open(path) as fh:
            raw = yaml.safe_load(fh) or {}
        rates = {str(k): float(v) for k, v in (raw.get("rates") or {}).items()}
        if not rates:
            logger.warning("No tax rates in %s, using defaults", path)
            return {str(k): v for k, v in _TAX_RATES.items()}
        return rates

    @property
    def codes(self) -> list[str]:
        return list(self._rates)

    def percent(self, code: str) -> float:
        key = self._lookup.get(str(code).strip().lower())
        if key is None:
            raise ValueError(
                f"Unknown tax code {code!r}. Available: {self.codes}"
            )
        return self._rates[key]

    def rate(self, code: str) -> float:
        """Return the rate as a fraction (``0.13`` for HST)."""
        return self.percent(code) / 100.0

    def as_dict(self) -> dict[str, float]:
        return dict(self._rates)


_default_table: TaxRateTable | None = None


def default_table() -> TaxRateTable:
    global _default_table
    if _default_table is None:
        _default_table = TaxRateTable()
    return _default_table
