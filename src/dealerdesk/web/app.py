"""FastAPI application for the dealerdesk back office.

Provides the worksheet, deals, inventory, webhook and draft APIs plus a
health check.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from dealerdesk.bridge.registry import AdapterRegistry
from dealerdesk.bridge.webhooks import HttpWebhookAdapter, load_adapter_configs
from dealerdesk.core.config import Settings
from dealerdesk.core.logging import configure_logging
from dealerdesk.deals.store import DealStore
from dealerdesk.drafts.cache import DraftCache
from dealerdesk.inventory.store import VehicleStore
from dealerdesk.repositories.protocols import DealRepository, VehicleRepository
from dealerdesk.web.deals_router import router as deals_router
from dealerdesk.web.drafts_router import router as drafts_router
from dealerdesk.web.vehicles_router import router as vehicles_router
from dealerdesk.web.webhook_router import router as webhook_router
from dealerdesk.web.worksheet_router import router as worksheet_router
from dealerdesk.worksheet.calculator import WorksheetCalculator
from dealerdesk.worksheet.taxes import TaxRateTable

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = VERSION
    storage: str = "memory"
    adapters: dict[str, str] = {}


def build_adapter_registry(settings: Settings) -> AdapterRegistry:
    """Register one HTTP adapter per entry in the webhook config file."""
    registry = AdapterRegistry()
    for config in load_adapter_configs(webhook_config=settings.webhook):
        registry.register(HttpWebhookAdapter(config))
        logger.info("Registered webhook adapter %s -> %s", config.name, config.base_url)
    return registry


def create_app(
    settings: Settings | None = None,
    deal_store: DealRepository | None = None,
    adapter_registry: AdapterRegistry | None = None,
    vehicle_store: VehicleRepository | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with their own stores and adapters.

    Args:
        settings: Application settings. Defaults to Settings().
        deal_store: Optional pre-built deal store or repository.
        adapter_registry: Optional pre-built webhook adapter registry.
        vehicle_store: Optional pre-built vehicle store or repository.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    configure_logging(settings.log_level)

    db_manager = None
    if settings.db.database_url and (deal_store is None or vehicle_store is None):
        from dealerdesk.db.engine import DatabaseManager
        from dealerdesk.repositories.postgres.deals import PostgresDealRepository
        from dealerdesk.repositories.postgres.vehicles import PostgresVehicleRepository

        db_manager = DatabaseManager.from_config(settings.db)
        if deal_store is None:
            deal_store = PostgresDealRepository(db_manager)
        if vehicle_store is None:
            vehicle_store = PostgresVehicleRepository(db_manager)
    if deal_store is None:
        deal_store = DealStore()
    if vehicle_store is None:
        vehicle_store = VehicleStore()

    if adapter_registry is None:
        adapter_registry = build_adapter_registry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if db_manager is not None:
            await db_manager.create_all()
        yield
        await adapter_registry.close()
        if db_manager is not None:
            await db_manager.close()

    app = FastAPI(
        title="DealerDesk",
        description="Dealership back office: deal worksheets, deal records, inventory and workflow webhooks",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    tax_table = TaxRateTable(config_path=settings.tax.config_path)

    # Store on app state for access in route handlers
    app.state.settings = settings
    app.state.deal_store = deal_store
    app.state.vehicle_store = vehicle_store
    app.state.adapter_registry = adapter_registry
    app.state.worksheet_calculator = WorksheetCalculator(tax_table)
    app.state.draft_cache = DraftCache(
        max_entries=settings.draft.max_entries,
        ttl_seconds=settings.draft.ttl_seconds,
    )
    if db_manager is not None:
        app.state.db_manager = db_manager

    app.include_router(worksheet_router)
    app.include_router(deals_router)
    app.include_router(vehicles_router)
    app.include_router(webhook_router)
    app.include_router(drafts_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            service="dealerdesk",
            storage="sql" if db_manager is not None else "memory",
            adapters={
                name: status.value
                for name, status in adapter_registry.health_check_all().items()
            },
        )

    return app
