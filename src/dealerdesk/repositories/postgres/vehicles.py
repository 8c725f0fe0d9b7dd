"""PostgreSQL vehicle inventory repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError

from dealerdesk.core.errors import DuplicateVinError, RecordNotFoundError
from dealerdesk.db.engine import DatabaseManager
from dealerdesk.db.models import VehicleRow
from dealerdesk.inventory.models import InventoryType, Vehicle, VehicleCreate, VehicleFilter
from dealerdesk.inventory.records import (
    check_sort_field,
    fleet_stock_number,
    next_fleet_stock_number,
)


class PostgresVehicleRepository:
    """Postgres-backed vehicle inventory."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_vehicles(self, query: VehicleFilter | None = None) -> list[Vehicle]:
        query = query or VehicleFilter()
        check_sort_field(query.sort_by)
        stmt = self._ordered(self._filtered(query), query)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        async with self._db.session() as db:
            result = await db.execute(stmt)
            return [self._row_to_vehicle(r) for r in result.scalars().all()]

    async def get_vehicle(self, vehicle_id: str) -> Vehicle | None:
        async with self._db.session() as db:
            row = await db.get(VehicleRow, vehicle_id)
            return self._row_to_vehicle(row) if row is not None else None

    async def existing_vins(self) -> set[str]:
        async with self._db.session() as db:
            result = await db.execute(select(VehicleRow.vin))
            return set(result.scalars().all())

    async def next_stock_number(self) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                select(VehicleRow.stock_number).where(VehicleRow.stock_number.ilike("F%"))
            )
            return next_fleet_stock_number(result.scalars().all())

    async def create_vehicle(self, data: VehicleCreate) -> Vehicle:
        fields = data.model_dump()
        if data.inventory_type == InventoryType.FLEET and not data.stock_number:
            fields["stock_number"] = fleet_stock_number(await self.next_stock_number())
        vehicle = Vehicle(**fields)
        async with self._db.session() as db:
            existing = await db.execute(select(VehicleRow.id).where(VehicleRow.vin == vehicle.vin))
            if existing.first() is not None:
                raise DuplicateVinError(vehicle.vin)
            row = VehicleRow(**vehicle.model_dump())
            db.add(row)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise DuplicateVinError(vehicle.vin) from exc
            return self._row_to_vehicle(row)

    async def update_vehicle(self, vehicle_id: str, changes: dict[str, Any]) -> Vehicle:
        async with self._db.transaction() as db:
            row = await db.get(VehicleRow, vehicle_id, with_for_update=True)
            if row is None:
                raise RecordNotFoundError("Vehicle not found")
            vin = changes.get("vin")
            if vin and vin != row.vin:
                clash = await db.execute(select(VehicleRow.id).where(VehicleRow.vin == vin))
                if clash.first() is not None:
                    raise DuplicateVinError(vin)
            for name, value in changes.items():
                # New lists so the JSON columns register the change
                setattr(row, name, list(value) if isinstance(value, list) else value)
            row.updated_at = datetime.now(timezone.utc)
        return self._row_to_vehicle(row)

    async def delete_vehicle(self, vehicle_id: str) -> None:
        async with self._db.transaction() as db:
            row = await db.get(VehicleRow, vehicle_id)
            if row is None:
                raise RecordNotFoundError("Vehicle not found")
            await db.delete(row)

    @staticmethod
    def _filtered(query: VehicleFilter) -> Select:
        stmt = select(VehicleRow).where(VehicleRow.status == query.status.value)
        if query.inventory_type:
            stmt = stmt.where(VehicleRow.inventory_type == query.inventory_type.value)
        if query.search:
            pattern = f"%{query.search}%"
            stmt = stmt.where(or_(
                VehicleRow.make.ilike(pattern),
                VehicleRow.model.ilike(pattern),
                VehicleRow.description.ilike(pattern),
            ))
        if query.make:
            stmt = stmt.where(func.lower(VehicleRow.make) == query.make.lower())
        if query.body_style:
            stmt = stmt.where(func.lower(VehicleRow.body_style) == query.body_style.lower())
        if query.min_price is not None:
            stmt = stmt.where(VehicleRow.price >= query.min_price)
        if query.max_price is not None:
            stmt = stmt.where(VehicleRow.price <= query.max_price)
        if query.min_year is not None:
            stmt = stmt.where(VehicleRow.year >= query.min_year)
        if query.max_year is not None:
            stmt = stmt.where(VehicleRow.year <= query.max_year)
        return stmt

    @staticmethod
    def _ordered(stmt: Select, query: VehicleFilter) -> Select:
        if not query.sort_by:
            return stmt.order_by(VehicleRow.featured.desc(), VehicleRow.created_at.desc())
        column = getattr(VehicleRow, query.sort_by)
        ordered = column.asc() if query.sort_order == "asc" else column.desc()
        return stmt.order_by(ordered.nulls_last())

    @staticmethod
    def _row_to_vehicle(row: VehicleRow) -> Vehicle:
        data = {name: getattr(row, name) for name in Vehicle.model_fields}
        data["features"] = list(row.features or [])
        data["images"] = list(row.images or [])
        return Vehicle(**data)
