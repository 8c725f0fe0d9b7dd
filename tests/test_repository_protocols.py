"""In-memory stores and SQL repositories satisfy the same protocols."""

from __future__ import annotations

import pytest

from dealerdesk.core.config import DBConfig
from dealerdesk.db.engine import DatabaseManager
from dealerdesk.deals.store import DealStore
from dealerdesk.inventory.store import VehicleStore
from dealerdesk.repositories import resolve
from dealerdesk.repositories.postgres.deals import PostgresDealRepository
from dealerdesk.repositories.postgres.vehicles import PostgresVehicleRepository
from dealerdesk.repositories.protocols import DealRepository, VehicleRepository


def test_in_memory_stores_satisfy_protocols():
    assert isinstance(DealStore(), DealRepository)
    assert isinstance(VehicleStore(), VehicleRepository)


def test_sql_repositories_satisfy_protocols():
    db = DatabaseManager("sqlite+aiosqlite:///:memory:")
    assert isinstance(PostgresDealRepository(db), DealRepository)
    assert isinstance(PostgresVehicleRepository(db), VehicleRepository)


async def test_resolve_handles_sync_and_async():
    async def value():
        return 2

    assert await resolve(1) == 1
    assert await resolve(value()) == 2


class TestDatabaseManager:
    def test_from_config(self):
        db = DatabaseManager.from_config(DBConfig(database_url="sqlite+aiosqlite:///:memory:"))
        assert db.is_sqlite
        assert db.backend == "sqlite"

    def test_from_config_requires_url(self):
        with pytest.raises(ValueError, match="database_url"):
            DatabaseManager.from_config(DBConfig())

    async def test_transaction_commits_or_rolls_back(self):
        from dealerdesk.db.models import DealCounterRow

        db = DatabaseManager("sqlite+aiosqlite:///:memory:")
        await db.create_all()
        async with db.transaction() as session:
            session.add(DealCounterRow(name="kept", value=1))
        with pytest.raises(RuntimeError):
            async with db.transaction() as session:
                session.add(DealCounterRow(name="dropped", value=1))
                await session.flush()
                raise RuntimeError("abort")
        async with db.session() as session:
            assert await session.get(DealCounterRow, "kept") is not None
            assert await session.get(DealCounterRow, "dropped") is None
        await db.close()
