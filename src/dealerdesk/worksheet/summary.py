"""Deal roll-ups and worksheet row serialization."""

from __future__ import annotations

import json
import logging
from typing import Any

from dealerdesk.core.types import to_money
from dealerdesk.worksheet.models import (
    DealExtras,
    DealSummary,
    LineItem,
    WorksheetInputs,
    WorksheetTotals,
)

logger = logging.getLogger(__name__)

_NAME_KEYS = ("fee_name", "name", "label")
_AMOUNT_KEYS = ("fee_amount", "amount", "price", "value")


def _parse_json_loose(value: Any) -> Any:
    if not value:
        return None
    if isinstance(value, (dict, list)):
        return value
    if not isinstance(value, str):
        return None
    try:
        return json.loads(value.strip())
    except ValueError:
        return None


def parse_line_items(raw: Any) -> list[dict[str, Any]]:
    """Accept a list or a JSON-array string; anything else is an empty list."""
    parsed = _parse_json_loose(raw)
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, dict)]


def _first(item: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


def to_line_items(raw: Any) -> list[LineItem]:
    items = []
    for entry in parse_line_items(raw):
        items.append(LineItem(
            name=str(_first(entry, _NAME_KEYS) or ""),
            description=str(entry.get("fee_desc") or entry.get("description") or ""),
            amount=_first(entry, _AMOUNT_KEYS),
        ))
    return items


def find_fee_amount(fees: Any, needle: str) -> float:
    """Amount of the first fee whose name contains ``needle`` (case-insensitive)."""
    needle = needle.lower()
    for entry in parse_line_items(fees):
        name = str(_first(entry, _NAME_KEYS) or "").lower()
        if name and needle in name:
            return to_money(_first(entry, ("fee_amount", "amount", "value")))
    return 0.0


def summarize_deal(totals: WorksheetTotals, extras: DealExtras) -> DealSummary:
    """Add line items and adjustments on top of the worksheet balance."""
    fees = sum(i.amount for i in extras.fees)
    accessories = sum(i.amount for i in extras.accessories)
    warranties = sum(i.amount for i in extras.warranties)
    insurances = sum(i.amount for i in extras.insurances)
    payments = sum(i.amount for i in extras.payments)

    grand_total = (
        totals.total_balance_due
        + fees
        + accessories
        + warranties
        + insurances
        - extras.deposit
        - extras.down_payment
        + extras.tax_on_insurance
    )
    return DealSummary(
        total_balance_due=round(totals.total_balance_due, 2),
        fees_total=round(fees, 2),
        accessories_total=round(accessories, 2),
        warranties_total=round(warranties, 2),
        insurances_total=round(insurances, 2),
        payments_total=round(payments, 2),
        deposit=round(extras.deposit, 2),
        down_payment=round(extras.down_payment, 2),
        tax_on_insurance=round(extras.tax_on_insurance, 2),
        grand_total=round(grand_total, 2),
    )


def worksheet_row(
    deal_id: str,
    inputs: WorksheetInputs,
    totals: WorksheetTotals,
    extras: DealExtras | None = None,
) -> dict[str, Any]:
    """Flat row stored in the worksheet table and posted to the worksheet webhook."""
    shown = totals.rounded()
    row: dict[str, Any] = {
        "id": deal_id,
        "deal_type": inputs.deal_type.value,
        "purchase_price": inputs.purchase_price,
        "discount": inputs.discount,
        "subtotal": shown.subtotal,
        "trade_value": inputs.trade_value,
        "actual_cash_value": inputs.actual_cash_value,
        "net_difference": shown.net_difference,
        "tax_code": inputs.tax_code,
        "tax_rate": totals.tax_rate,
        "tax_override": inputs.tax_override,
        "tax_manual": inputs.tax_manual,
        "total_tax": shown.total_tax,
        "lien_payout": inputs.lien_payout,
        "trade_equity": shown.trade_equity,
        "license_fee": inputs.license_fee,
        "new_plates": inputs.new_plates,
        "renewal_only": inputs.renewal_only,
        "total_balance_due": shown.total_balance_due,
    }
    if inputs.is_finance:
        row.update({
            "finance_rate": inputs.finance_rate_percent,
            "finance_term": inputs.finance_term_months,
            "payment_frequency": inputs.payment_frequency.value,
            "financed_amount": shown.financed_amount,
            "payment": shown.payment,
            "finance_interest": shown.finance_interest,
        })
    if extras is not None:
        for key in ("fees", "accessories", "warranties", "insurances", "payments"):
            row[key] = [item.model_dump() for item in getattr(extras, key)]
        row["deposit"] = extras.deposit
        row["down_payment"] = extras.down_payment
        row["tax_on_insurance"] = extras.tax_on_insurance
    return row


_PRICE_KEYS = ("saleprice", "sale_price", "salePrice", "listPrice", "listprice", "list_price")


def resolve_sell_price(vehicle: dict[str, Any]) -> float:
    """First positive sale/list price found on a vehicle row, else 0.

    Looks at the row itself, then its ``costs_data`` and ``purchase_data``
    JSON blobs, then the advertised ``price``.
    """
    costs = (
        _parse_json_loose(vehicle.get("costsData"))
        or _parse_json_loose(vehicle.get("costs_data"))
        or _parse_json_loose(vehicle.get("costs_data_json"))
        or {}
    )
    purchase = (
        _parse_json_loose(vehicle.get("purchaseData"))
        or _parse_json_loose(vehicle.get("purchase_data"))
        or {}
    )
    if not isinstance(costs, dict):
        costs = {}
    if not isinstance(purchase, dict):
        purchase = {}

    candidates = [vehicle.get(k) for k in _PRICE_KEYS]
    candidates += [costs.get(k) for k in _PRICE_KEYS]
    candidates += [purchase.get("vehiclePrice"), purchase.get("vehicle_price"), vehicle.get("price")]

    for candidate in candidates:
        price = to_money(candidate)
        if price > 0:
            return price
    logger.debug("No sell price on vehicle %s", vehicle.get("id"))
    return 0.0
