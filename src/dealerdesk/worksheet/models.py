"""Worksheet data models: inputs, derived totals and payment schedules."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from dealerdesk.core.types import DealType, to_money


class PaymentFrequency(StrEnum):
    """Finance payment frequency."""

    WEEKLY = "Weekly"
    BI_WEEKLY = "Bi-Weekly"
    SEMI_MONTHLY = "Semi-Monthly"
    MONTHLY = "Monthly"

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]


_PERIODS_PER_YEAR: dict[PaymentFrequency, int] = {
    PaymentFrequency.WEEKLY: 52,
    PaymentFrequency.BI_WEEKLY: 26,
    PaymentFrequency.SEMI_MONTHLY: 24,
    PaymentFrequency.MONTHLY: 12,
}

_MONEY_FIELDS = (
    "purchase_price",
    "discount",
    "trade_value",
    "actual_cash_value",
    "lien_payout",
    "license_fee",
    "tax_manual",
    "finance_rate_percent",
    "finance_term_months",
)


class WorksheetInputs(BaseModel):
    """User-editable worksheet fields.

    Numeric fields accept numbers or form strings; anything unparsable is 0.
    """

    deal_type: DealType = DealType.CASH
    purchase_price: float = 0.0
    discount: float = 0.0
    trade_value: float = 0.0
    actual_cash_value: float = 0.0
    lien_payout: float = 0.0
    license_fee: float = 0.0
    tax_code: str = "HST"
    tax_override: bool = False
    tax_manual: float = 0.0
    new_plates: bool = False
    renewal_only: bool = False

    # Finance deals only
    finance_rate_percent: float = 0.0
    finance_term_months: float = 0.0
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY

    @field_validator(*_MONEY_FIELDS, mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> float:
        return to_money(value)

    @field_validator("tax_override", "new_plates", "renewal_only", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"true", "1", "yes", "on"}
        return bool(value)

    @property
    def is_finance(self) -> bool:
        return self.deal_type == DealType.FINANCE


class PaymentSchedule(BaseModel):
    """Fixed-rate amortization result."""

    principal: float
    annual_rate_percent: float
    term_months: float
    frequency: PaymentFrequency
    periods_per_year: int
    periods: int
    periodic_rate: float
    payment: float
    finance_interest: float

    def rounded(self) -> PaymentSchedule:
        return self.model_copy(update={
            "principal": round(self.principal, 2),
            "payment": round(self.payment, 2),
            "finance_interest": round(self.finance_interest, 2),
        })


class WorksheetTotals(BaseModel):
    """Derived worksheet values at full precision until ``rounded()``."""

    subtotal: float
    net_difference: float
    trade_equity: float
    tax_rate: float
    computed_tax: float
    total_tax: float
    total_balance_due: float
    financed_amount: float | None = None
    payment: float | None = None
    finance_interest: float | None = None
    periods: int | None = None

    def rounded(self) -> WorksheetTotals:
        """Presentation copy with currency fields rounded to cents."""
        update: dict[str, Any] = {}
        for name in (
            "subtotal",
            "net_difference",
            "trade_equity",
            "computed_tax",
            "total_tax",
            "total_balance_due",
            "financed_amount",
            "payment",
            "finance_interest",
        ):
            value = getattr(self, name)
            if value is not None:
                update[name] = round(value, 2)
        return self.model_copy(update=update)


class LineItem(BaseModel):
    """A fee, accessory, warranty, insurance or payment line on a deal."""

    name: str = ""
    description: str = ""
    amount: float = 0.0

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return to_money(value)


class DealExtras(BaseModel):
    """Line items and adjustments that sit on top of the worksheet totals."""

    fees: list[LineItem] = Field(default_factory=list)
    accessories: list[LineItem] = Field(default_factory=list)
    warranties: list[LineItem] = Field(default_factory=list)
    insurances: list[LineItem] = Field(default_factory=list)
    payments: list[LineItem] = Field(default_factory=list)
    deposit: float = 0.0
    down_payment: float = 0.0
    tax_on_insurance: float = 0.0

    @field_validator("deposit", "down_payment", "tax_on_insurance", mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> float:
        return to_money(value)


class DealSummary(BaseModel):
    """Bill-of-sale style roll-up of a worksheet and its line items."""

    total_balance_due: float
    fees_total: float
    accessories_total: float
    warranties_total: float
    insurances_total: float
    payments_total: float
    deposit: float
    down_payment: float
    tax_on_insurance: float
    grand_total: float
