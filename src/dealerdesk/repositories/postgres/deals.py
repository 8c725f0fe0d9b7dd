"""PostgreSQL deal repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select

from dealerdesk.core.errors import RecordNotFoundError, VersionConflictError
from dealerdesk.db.engine import DatabaseManager
from dealerdesk.db.models import DealCounterRow, DealRecordRow
from dealerdesk.deals.models import (
    DealBundle,
    DealRecord,
    DealSummaryRow,
    DealTable,
    build_deal_summaries,
    bundle_records,
)

_DEAL_COUNTER = "deal_id"


class PostgresDealRepository:
    """Postgres-backed deal sub-record storage."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def allocate_deal_id(self) -> str:
        async with self._db.session() as db:
            result = await db.execute(
                select(DealCounterRow)
                .where(DealCounterRow.name == _DEAL_COUNTER)
                .with_for_update()
            )
            counter = result.scalar_one_or_none()
            if counter is None:
                counter = DealCounterRow(name=_DEAL_COUNTER, value=0)
                db.add(counter)
            counter.value += 1
            value = counter.value
            await db.commit()
        return str(value)

    async def insert(self, table: DealTable | str, deal_id: str, data: dict[str, Any]) -> DealRecord:
        table = DealTable.parse(table)
        async with self._db.session() as db:
            row = DealRecordRow(table_name=table.value, deal_id=str(deal_id), data=dict(data), version=1)
            db.add(row)
            await db.commit()
            return self._row_to_record(row)

    async def update(
        self,
        table: DealTable | str,
        deal_id: str,
        data: dict[str, Any],
        expected_version: int | None = None,
    ) -> list[DealRecord]:
        table = DealTable.parse(table)
        deal_id = str(deal_id)
        async with self._db.session() as db:
            result = await db.execute(
                select(DealRecordRow)
                .where(DealRecordRow.table_name == table.value, DealRecordRow.deal_id == deal_id)
                .order_by(DealRecordRow.id)
                .with_for_update()
            )
            rows = list(result.scalars().all())
            if not rows:
                raise RecordNotFoundError(f"No row found with id={deal_id} in {table.value}")

            current = max(r.version for r in rows)
            if expected_version is not None and expected_version != current:
                raise VersionConflictError(table.value, deal_id, expected_version, current)

            now = datetime.now(timezone.utc)
            for row in rows:
                # New dict so the JSON column registers the change
                row.data = {**(row.data or {}), **data}
                row.version = current + 1
                row.updated_at = now
            await db.commit()
            return [self._row_to_record(r) for r in rows]

    async def get_deal(self, deal_id: str) -> DealBundle | None:
        deal_id = str(deal_id)
        async with self._db.session() as db:
            result = await db.execute(
                select(DealRecordRow)
                .where(DealRecordRow.deal_id == deal_id)
                .order_by(DealRecordRow.id)
            )
            records = [self._row_to_record(r) for r in result.scalars().all()]
        bundle = bundle_records(deal_id, records)
        return None if bundle.is_empty else bundle

    async def list_deals(self) -> list[DealSummaryRow]:
        async with self._db.session() as db:
            result = await db.execute(select(DealRecordRow).order_by(DealRecordRow.id))
            records = [self._row_to_record(r) for r in result.scalars().all()]
        return build_deal_summaries(records)

    async def delete_deal(self, deal_id: str) -> dict[str, int]:
        deal_id = str(deal_id)
        counts = {table.value: 0 for table in DealTable}
        async with self._db.session() as db:
            result = await db.execute(
                select(DealRecordRow.table_name).where(DealRecordRow.deal_id == deal_id)
            )
            for (table_name,) in result.all():
                counts[table_name] = counts.get(table_name, 0) + 1
            await db.execute(delete(DealRecordRow).where(DealRecordRow.deal_id == deal_id))
            await db.commit()
        return counts

    @staticmethod
    def _row_to_record(row: DealRecordRow) -> DealRecord:
        return DealRecord(
            table=DealTable(row.table_name),
            deal_id=row.deal_id,
            data=dict(row.data or {}),
            version=row.version,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
