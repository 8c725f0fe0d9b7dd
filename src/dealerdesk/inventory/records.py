"""Inventory listing rules and fleet stock-number allocation."""

from __future__ import annotations

import re
from typing import Iterable

from dealerdesk.inventory.models import Vehicle, VehicleFilter

FIRST_FLEET_STOCK_NUMBER = 1000

_FLEET_STOCK = re.compile(r"^F(\d+)$", re.IGNORECASE)

# Columns a list may be ordered by
SORTABLE_FIELDS = frozenset({
    "make", "model", "year", "price", "mileage", "created_at", "updated_at",
    "stock_number", "body_style", "featured", "status",
})


def next_fleet_stock_number(stock_numbers: Iterable[str | None]) -> int:
    """One past the highest ``F####`` stock number, starting at 1000."""
    next_number = FIRST_FLEET_STOCK_NUMBER
    for stock in stock_numbers:
        match = _FLEET_STOCK.match(stock or "")
        if match and int(match.group(1)) >= next_number:
            next_number = int(match.group(1)) + 1
    return next_number


def fleet_stock_number(number: int) -> str:
    return f"F{number}"


def check_sort_field(sort_by: str | None) -> None:
    if sort_by and sort_by not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort by {sort_by!r}. Available: {sorted(SORTABLE_FIELDS)}")


def matches_filter(vehicle: Vehicle, query: VehicleFilter) -> bool:
    if vehicle.status != query.status:
        return False
    if query.inventory_type and vehicle.inventory_type != query.inventory_type:
        return False
    if query.search:
        needle = query.search.lower()
        haystack = (vehicle.make, vehicle.model, vehicle.description or "")
        if not any(needle in text.lower() for text in haystack):
            return False
    if query.make and vehicle.make.lower() != query.make.lower():
        return False
    if query.body_style and vehicle.body_style.lower() != query.body_style.lower():
        return False
    if query.min_price is not None and vehicle.price < query.min_price:
        return False
    if query.max_price is not None and vehicle.price > query.max_price:
        return False
    if query.min_year is not None and vehicle.year < query.min_year:
        return False
    if query.max_year is not None and vehicle.year > query.max_year:
        return False
    return True


def sort_vehicles(vehicles: list[Vehicle], query: VehicleFilter) -> list[Vehicle]:
    """Featured first, newest first; or by ``sort_by`` when given."""
    check_sort_field(query.sort_by)
    if not query.sort_by:
        return sorted(vehicles, key=lambda v: (v.featured, v.created_at), reverse=True)

    descending = query.sort_order != "asc"
    present = [v for v in vehicles if getattr(v, query.sort_by) is not None]
    missing = [v for v in vehicles if getattr(v, query.sort_by) is None]
    ordered = sorted(present, key=lambda v: getattr(v, query.sort_by), reverse=descending)
    return ordered + missing


def filter_vehicles(vehicles: Iterable[Vehicle], query: VehicleFilter) -> list[Vehicle]:
    selected = sort_vehicles([v for v in vehicles if matches_filter(v, query)], query)
    if query.limit is not None:
        selected = selected[: query.limit]
    return selected
