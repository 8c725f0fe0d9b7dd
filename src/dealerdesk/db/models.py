"""SQLAlchemy ORM models for deal and inventory storage."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from dealerdesk.db.base import Base


def _jsonb() -> type:
    """Return JSONB for Postgres, plain JSON for SQLite."""
    return JSON().with_variant(PG_JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DealRecordRow(Base):
    """One row of any deal sub-record table, keyed by table name and deal id."""

    __tablename__ = "deal_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    table_name: Mapped[str] = mapped_column(String(64))
    deal_id: Mapped[str] = mapped_column(String(64))
    data: Mapped[dict] = mapped_column(_jsonb(), default=dict)
    version: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_deal_records_deal_id", "deal_id"),
        Index("ix_deal_records_table_deal", "table_name", "deal_id"),
    )


class DealCounterRow(Base):
    """Named monotonically increasing counter used to allocate deal ids."""

    __tablename__ = "deal_counters"

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, default=0)


class VehicleRow(Base):
    """A vehicle in inventory."""

    __tablename__ = "vehicles"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    make: Mapped[str] = mapped_column(String(64))
    model: Mapped[str] = mapped_column(String(128))
    year: Mapped[int] = mapped_column(Integer)
    trim: Mapped[str | None] = mapped_column(String(128), nullable=True)
    vin: Mapped[str] = mapped_column(String(32), unique=True)
    stock_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    series: Mapped[str | None] = mapped_column(String(64), nullable=True)
    equipment: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float)
    original_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    mileage: Mapped[int] = mapped_column(Integer, default=0)
    exterior_color: Mapped[str] = mapped_column(String(64), default="")
    interior_color: Mapped[str | None] = mapped_column(String(64), nullable=True)
    transmission: Mapped[str] = mapped_column(String(64), default="")
    drivetrain: Mapped[str | None] = mapped_column(String(16), nullable=True)
    fuel_type: Mapped[str] = mapped_column(String(32), default="")
    body_style: Mapped[str] = mapped_column(String(32), default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    features: Mapped[list] = mapped_column(_jsonb(), default=list)
    images: Mapped[list] = mapped_column(_jsonb(), default=list)
    city: Mapped[str] = mapped_column(String(64), default="Toronto")
    province: Mapped[str] = mapped_column(String(32), default="ON")
    postal_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[str] = mapped_column(String(16), default="ACTIVE")
    inventory_type: Mapped[str] = mapped_column(String(16), default="FLEET")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_vehicles_status", "status"),
        Index("ix_vehicles_stock_number", "stock_number"),
    )
