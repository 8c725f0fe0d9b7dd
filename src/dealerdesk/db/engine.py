"""Engine and session lifecycle for the deal and inventory tables."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from dealerdesk.core.config import DBConfig
from dealerdesk.db.base import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """One async engine shared by the deal and vehicle repositories.

    Postgres (asyncpg) in production; tests run the same repositories on
    ``sqlite+aiosqlite:///:memory:``, which gets no connection pool options.
    Tables are created at app startup by ``create_all``.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 5,
    ) -> None:
        self._backend = make_url(database_url).get_backend_name()
        options: dict[str, Any] = {"echo": echo}
        if not self.is_sqlite:
            options.update(pool_size=pool_size, pool_pre_ping=True)
        self._engine: AsyncEngine = create_async_engine(database_url, **options)
        self._sessions: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DBConfig) -> DatabaseManager:
        if not config.database_url:
            raise ValueError("DBConfig.database_url is not set")
        return cls(config.database_url, echo=config.echo, pool_size=config.pool_size)

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def is_sqlite(self) -> bool:
        return self._backend == "sqlite"

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def session(self) -> AsyncSession:
        return self._sessions()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Session that commits when the block exits cleanly and rolls back otherwise."""
        async with self._sessions() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise
            await session.commit()

    async def create_all(self) -> None:
        # Import registers the row classes on Base.metadata
        from dealerdesk.db import models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Storage tables ready on %s", self._backend)

    async def close(self) -> None:
        await self._engine.dispose()
