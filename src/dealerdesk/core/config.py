"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class DBConfig(BaseSettings):
    """Relational store configuration.

    With no ``database_url`` the app runs on in-memory stores.
    """

    model_config = {"env_prefix": "DEALERDESK_DB_"}

    database_url: str | None = None
    echo: bool = False
    pool_size: int = 5


class WebhookConfig(BaseSettings):
    """Workflow webhook configuration."""

    model_config = {"env_prefix": "DEALERDESK_WEBHOOK_"}

    base_url: str = "http://localhost:5678/webhook"
    config_path: str = "config/webhooks.yml"
    timeout_seconds: int = 30
    max_retries: int = 0


class TaxConfig(BaseSettings):
    """Tax-rate table configuration."""

    model_config = {"env_prefix": "DEALERDESK_TAX_"}

    config_path: str = "config/tax_rates.yml"


class DraftConfig(BaseSettings):
    """Draft cache configuration."""

    model_config = {"env_prefix": "DEALERDESK_DRAFT_"}

    max_entries: int = 256
    ttl_seconds: int = 7 * 24 * 3600


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "DEALERDESK_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3001"]
    )

    db: DBConfig = Field(default_factory=DBConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    tax: TaxConfig = Field(default_factory=TaxConfig)
    draft: DraftConfig = Field(default_factory=DraftConfig)
