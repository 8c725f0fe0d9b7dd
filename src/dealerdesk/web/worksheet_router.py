"""Worksheet API router: totals, payments, cost lines and deal summaries."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from dealerdesk.worksheet.amortization import amortize
from dealerdesk.worksheet.costs import CostLineItem, summarize_costs
from dealerdesk.worksheet.models import DealExtras, PaymentFrequency, WorksheetInputs
from dealerdesk.worksheet.summary import find_fee_amount, summarize_deal, to_line_items

router = APIRouter()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class AmortizeRequest(BaseModel):
    principal: float
    annual_rate_percent: float = 0.0
    term_months: float = 0.0
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    down_payment: float = 0.0


class CostsRequest(BaseModel):
    items: list[CostLineItem] = Field(default_factory=list)


class SummaryRequest(BaseModel):
    """Worksheet inputs plus the line-item lists as stored (lists or JSON text)."""

    inputs: WorksheetInputs = Field(default_factory=WorksheetInputs)
    fees: Any = None
    accessories: Any = None
    warranties: Any = None
    insurances: Any = None
    payments: Any = None
    deposit: Any = 0
    down_payment: Any = 0
    tax_on_insurance: Any = 0

    def extras(self) -> DealExtras:
        return DealExtras(
            fees=to_line_items(self.fees),
            accessories=to_line_items(self.accessories),
            warranties=to_line_items(self.warranties),
            insurances=to_line_items(self.insurances),
            payments=to_line_items(self.payments),
            deposit=self.deposit,
            down_payment=self.down_payment,
            tax_on_insurance=self.tax_on_insurance,
        )


def _get_calculator(request: Request):
    calculator = getattr(request.app.state, "worksheet_calculator", None)
    if calculator is None:
        raise HTTPException(status_code=503, detail="Worksheet calculator not available")
    return calculator


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/api/worksheet/calculate")
async def api_calculate(body: WorksheetInputs, request: Request) -> dict[str, Any]:
    """Recompute every derived worksheet field, rounded for display."""
    calculator = _get_calculator(request)
    try:
        totals = calculator.calculate(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return totals.rounded().model_dump(mode="json")


@router.post("/api/worksheet/amortize")
async def api_amortize(body: AmortizeRequest) -> dict[str, Any]:
    schedule = amortize(
        principal=body.principal,
        annual_rate_percent=body.annual_rate_percent,
        term_months=body.term_months,
        frequency=body.frequency,
        down_payment=body.down_payment,
    )
    return schedule.rounded().model_dump(mode="json")


@router.post("/api/worksheet/costs")
async def api_costs(body: CostsRequest, request: Request) -> dict[str, Any]:
    """Price cost line items and total them."""
    calculator = _get_calculator(request)
    try:
        summary = summarize_costs(body.items, calculator.table)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return summary.model_dump(mode="json")


@router.get("/api/worksheet/tax-codes")
async def api_tax_codes(request: Request) -> dict[str, Any]:
    calculator = _get_calculator(request)
    return {"rates": calculator.table.as_dict()}


@router.post("/api/worksheet/summary")
async def api_summary(body: SummaryRequest, request: Request) -> dict[str, Any]:
    """Worksheet totals plus fees, add-ons and adjustments."""
    calculator = _get_calculator(request)
    try:
        totals = calculator.calculate(body.inputs)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    summary = summarize_deal(totals, body.extras())
    return {
        "totals": totals.rounded().model_dump(mode="json"),
        "summary": summary.model_dump(mode="json"),
        "omvic_fee": round(find_fee_amount(body.fees, "omvic"), 2),
    }
