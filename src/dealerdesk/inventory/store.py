"""In-memory vehicle inventory store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from dealerdesk.core.errors import DuplicateVinError, RecordNotFoundError
from dealerdesk.inventory.models import InventoryType, Vehicle, VehicleCreate, VehicleFilter
from dealerdesk.inventory.records import (
    filter_vehicles,
    fleet_stock_number,
    next_fleet_stock_number,
)


class VehicleStore:
    """In-memory vehicle inventory keyed by id.

    Suitable for single-instance deployment and tests; the Postgres
    repository implements the same methods.
    """

    def __init__(self) -> None:
        self._vehicles: dict[str, Vehicle] = {}

    def list_vehicles(self, query: VehicleFilter | None = None) -> list[Vehicle]:
        return filter_vehicles(self._vehicles.values(), query or VehicleFilter())

    def get_vehicle(self, vehicle_id: str) -> Vehicle | None:
        return self._vehicles.get(vehicle_id)

    def existing_vins(self) -> set[str]:
        return {v.vin for v in self._vehicles.values()}

    def next_stock_number(self) -> int:
        return next_fleet_stock_number(v.stock_number for v in self._vehicles.values())

    def create_vehicle(self, data: VehicleCreate) -> Vehicle:
        """Add a vehicle; fleet units without a stock number get the next ``F####``."""
        if data.vin in self.existing_vins():
            raise DuplicateVinError(data.vin)
        fields = data.model_dump()
        if data.inventory_type == InventoryType.FLEET and not data.stock_number:
            fields["stock_number"] = fleet_stock_number(self.next_stock_number())
        vehicle = Vehicle(**fields)
        self._vehicles[vehicle.id] = vehicle
        return vehicle

    def update_vehicle(self, vehicle_id: str, changes: dict[str, Any]) -> Vehicle:
        vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            raise RecordNotFoundError("Vehicle not found")
        vin = changes.get("vin")
        if vin and vin != vehicle.vin and vin in self.existing_vins():
            raise DuplicateVinError(vin)
        updated = vehicle.model_copy(update={**changes, "updated_at": datetime.now(timezone.utc)})
        self._vehicles[vehicle_id] = Vehicle.model_validate(updated.model_dump())
        return self._vehicles[vehicle_id]

    def delete_vehicle(self, vehicle_id: str) -> None:
        if self._vehicles.pop(vehicle_id, None) is None:
            raise RecordNotFoundError("Vehicle not found")
