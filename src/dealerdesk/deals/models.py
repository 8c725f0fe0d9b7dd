"""Deal sub-record models and the combined deal listing."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Iterable

from pydantic import BaseModel, Field

from dealerdesk.core.errors import UnknownTableError


class DealTable(StrEnum):
    """Tables a deal is spread across; the only tables the API may write."""

    CUSTOMERS = "edc_deals_customers"
    VEHICLES = "edc_deals_vehicles"
    WORKSHEET = "edc_deals_worksheet"
    DISCLOSURES = "edc_deals_disclosures"
    DELIVERY = "edc_deals_delivery"

    @classmethod
    def parse(cls, name: str) -> DealTable:
        try:
            return cls(name)
        except ValueError:
            raise UnknownTableError(f'Table "{name}" is not allowed') from None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DealRecord(BaseModel):
    """One row of a deal sub-record table. ``data`` mirrors the row's columns."""

    table: DealTable
    deal_id: str
    data: dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class DealBundle(BaseModel):
    """Everything stored for one deal."""

    deal_id: str
    customer: DealRecord | None = None
    vehicles: list[DealRecord] = Field(default_factory=list)
    worksheet: DealRecord | None = None
    disclosures: DealRecord | None = None
    delivery: DealRecord | None = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.customer or self.vehicles or self.worksheet
            or self.disclosures or self.delivery
        )


class DealSummaryRow(BaseModel):
    """One line of the deals list, keyed by a customer row."""

    deal_id: str
    primary_customer: str = ""
    vehicle: str = ""
    type: str = ""
    state: str = ""
    deal_date: str = ""
    primary_salesperson: str = ""
    customer: dict[str, Any] = Field(default_factory=dict)
    vehicles: list[dict[str, Any]] = Field(default_factory=list)
    worksheet: dict[str, Any] | None = None
    disclosures: dict[str, Any] | None = None
    delivery: dict[str, Any] | None = None


def bundle_records(deal_id: str, records: Iterable[DealRecord]) -> DealBundle:
    """Group one deal's rows into a bundle; the first row of single-row tables wins."""
    bundle = DealBundle(deal_id=deal_id)
    for record in records:
        if record.table == DealTable.VEHICLES:
            bundle.vehicles.append(record)
        elif record.table == DealTable.CUSTOMERS:
            bundle.customer = bundle.customer or record
        elif record.table == DealTable.WORKSHEET:
            bundle.worksheet = bundle.worksheet or record
        elif record.table == DealTable.DISCLOSURES:
            bundle.disclosures = bundle.disclosures or record
        elif record.table == DealTable.DELIVERY:
            bundle.delivery = bundle.delivery or record
    return bundle


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def vehicle_label(vehicle: dict[str, Any]) -> str:
    """``stock - year - make - model - trim``, falling back to the VIN."""
    parts = [
        _first(vehicle.get("selected_stock_number")),
        _first(vehicle.get("selected_year"), vehicle.get("year")),
        _first(vehicle.get("selected_make"), vehicle.get("make")),
        _first(vehicle.get("selected_model"), vehicle.get("model")),
        _first(vehicle.get("selected_trim"), vehicle.get("trim")),
    ]
    label = " - ".join(str(part) for part in parts if part not in (None, "")).strip()
    if label:
        return label
    return str(_first(vehicle.get("selected_vin"), vehicle.get("vin")) or "")


def primary_customer(customer: dict[str, Any]) -> str:
    name = " ".join(
        str(part) for part in (customer.get("firstname"), customer.get("lastname")) if part
    )
    return name or customer.get("displayname") or customer.get("legalname") or ""


def _deal_state(row: dict[str, Any] | None) -> Any:
    if not row:
        return None
    return _first(row.get("deal_state"), row.get("dealState"), row.get("dealstate"))


def build_deal_summaries(records: Iterable[DealRecord]) -> list[DealSummaryRow]:
    """Combine sub-records into list rows, newest customer first."""
    records = list(records)
    by_deal: dict[str, list[DealRecord]] = {}
    for record in records:
        by_deal.setdefault(record.deal_id, []).append(record)

    customers = [r for r in records if r.table == DealTable.CUSTOMERS]
    # reversed() so equal timestamps still list the later insert first
    customers = sorted(reversed(customers), key=lambda r: r.created_at, reverse=True)

    rows: list[DealSummaryRow] = []
    for customer in customers:
        bundle = bundle_records(customer.deal_id, by_deal[customer.deal_id])
        c = customer.data
        worksheet = bundle.worksheet.data if bundle.worksheet else None
        delivery = bundle.delivery.data if bundle.delivery else None
        state = _first(
            c.get("deal_state"), c.get("dealState"), c.get("dealstate"), c.get("state"),
            _deal_state(worksheet), _deal_state(delivery),
        )
        rows.append(DealSummaryRow(
            deal_id=customer.deal_id,
            primary_customer=primary_customer(c),
            vehicle=vehicle_label(bundle.vehicles[0].data) if bundle.vehicles else "",
            type=str(c.get("dealtype") or ""),
            state=str(state or "").strip(),
            deal_date=str(c.get("dealdate") or ""),
            primary_salesperson=str((delivery or {}).get("salesperson") or ""),
            customer=c,
            vehicles=[v.data for v in bundle.vehicles],
            worksheet=worksheet,
            disclosures=bundle.disclosures.data if bundle.disclosures else None,
            delivery=delivery,
        ))
    return rows
