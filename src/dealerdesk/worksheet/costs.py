"""Reconditioning and acquisition cost lines for inventory vehicles."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from dealerdesk.core.types import to_money
from dealerdesk.worksheet.taxes import TaxRateTable, default_table


class CostLineItem(BaseModel):
    """A single cost entry against a stock number."""

    description: str = ""
    vendor: str = ""
    price: float = 0.0
    qty: float = 1.0
    discount: float = 0.0
    tax_code: str = "Exempt"

    @field_validator("price", "discount", mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> float:
        return to_money(value)

    @field_validator("qty", mode="before")
    @classmethod
    def _coerce_qty(cls, value: Any) -> float:
        qty = to_money(value)
        return qty if qty else 1.0


class CostLineTotals(BaseModel):
    description: str
    taxable: float
    tax: float
    total: float


class CostSummary(BaseModel):
    lines: list[CostLineTotals] = Field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0


def price_cost_line(item: CostLineItem, table: TaxRateTable | None = None) -> CostLineTotals:
    """Tax applies to the discounted amount, floored at zero; the total is not floored."""
    table = table or default_table()
    gross = item.price * item.qty - item.discount
    taxable = max(0.0, gross)
    tax = taxable * table.rate(item.tax_code)
    return CostLineTotals(
        description=item.description,
        taxable=round(taxable, 2),
        tax=round(tax, 2),
        total=round(gross + tax, 2),
    )


def summarize_costs(
    items: list[CostLineItem],
    table: TaxRateTable | None = None,
) -> CostSummary:
    table = table or default_table()
    lines = [price_cost_line(item, table) for item in items]
    subtotal = sum(item.price * item.qty - item.discount for item in items)
    tax = sum(max(0.0, item.price * item.qty - item.discount) * table.rate(item.tax_code) for item in items)
    return CostSummary(
        lines=lines,
        subtotal=round(subtotal, 2),
        tax=round(tax, 2),
        total=round(subtotal + tax, 2),
    )
