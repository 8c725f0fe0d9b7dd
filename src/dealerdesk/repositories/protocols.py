"""Protocol definitions for repository interfaces.

Each protocol mirrors the public methods of the corresponding in-memory
store class exactly, so sync (in-memory) and async (Postgres)
implementations satisfy the same interface.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from dealerdesk.deals.models import DealBundle, DealRecord, DealSummaryRow, DealTable
from dealerdesk.inventory.models import Vehicle, VehicleCreate, VehicleFilter


@runtime_checkable
class DealRepository(Protocol):
    """Protocol for deal sub-record storage."""

    def allocate_deal_id(self) -> str: ...

    def insert(self, table: DealTable | str, deal_id: str, data: dict[str, Any]) -> DealRecord: ...

    def update(
        self,
        table: DealTable | str,
        deal_id: str,
        data: dict[str, Any],
        expected_version: int | None = None,
    ) -> list[DealRecord]: ...

    def get_deal(self, deal_id: str) -> DealBundle | None: ...

    def list_deals(self) -> list[DealSummaryRow]: ...

    def delete_deal(self, deal_id: str) -> dict[str, int]: ...


@runtime_checkable
class VehicleRepository(Protocol):
    """Protocol for vehicle inventory storage."""

    def list_vehicles(self, query: VehicleFilter | None = None) -> list[Vehicle]: ...

    def get_vehicle(self, vehicle_id: str) -> Vehicle | None: ...

    def existing_vins(self) -> set[str]: ...

    def next_stock_number(self) -> int: ...

    def create_vehicle(self, data: VehicleCreate) -> Vehicle: ...

    def update_vehicle(self, vehicle_id: str, changes: dict[str, Any]) -> Vehicle: ...

    def delete_vehicle(self, vehicle_id: str) -> None: ...
