"""In-memory store for deal sub-records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from dealerdesk.core.errors import RecordNotFoundError, VersionConflictError
from dealerdesk.deals.models import (
    DealBundle,
    DealRecord,
    DealSummaryRow,
    DealTable,
    build_deal_summaries,
    bundle_records,
)


class DealStore:
    """In-memory list store for deal sub-records.

    Suitable for single-instance deployment and tests; the Postgres
    repository implements the same methods.
    """

    def __init__(self) -> None:
        self._records: list[DealRecord] = []
        self._last_deal_id = 0

    def allocate_deal_id(self) -> str:
        self._last_deal_id += 1
        return str(self._last_deal_id)

    def insert(self, table: DealTable | str, deal_id: str, data: dict[str, Any]) -> DealRecord:
        record = DealRecord(table=DealTable.parse(table), deal_id=str(deal_id), data=dict(data))
        self._records.append(record)
        return record

    def update(
        self,
        table: DealTable | str,
        deal_id: str,
        data: dict[str, Any],
        expected_version: int | None = None,
    ) -> list[DealRecord]:
        table = DealTable.parse(table)
        deal_id = str(deal_id)
        rows = [r for r in self._records if r.table == table and r.deal_id == deal_id]
        if not rows:
            raise RecordNotFoundError(f"No row found with id={deal_id} in {table.value}")

        current = max(r.version for r in rows)
        if expected_version is not None and expected_version != current:
            raise VersionConflictError(table.value, deal_id, expected_version, current)

        now = datetime.now(timezone.utc)
        for row in rows:
            row.data = {**row.data, **data}
            row.version = current + 1
            row.updated_at = now
        return rows

    def get_deal(self, deal_id: str) -> DealBundle | None:
        deal_id = str(deal_id)
        bundle = bundle_records(deal_id, (r for r in self._records if r.deal_id == deal_id))
        return None if bundle.is_empty else bundle

    def list_deals(self) -> list[DealSummaryRow]:
        return build_deal_summaries(self._records)

    def delete_deal(self, deal_id: str) -> dict[str, int]:
        deal_id = str(deal_id)
        counts = {table.value: 0 for table in DealTable}
        kept: list[DealRecord] = []
        for record in self._records:
            if record.deal_id == deal_id:
                counts[record.table.value] += 1
            else:
                kept.append(record)
        self._records = kept
        return counts
