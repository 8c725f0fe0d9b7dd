"""Inventory vehicle models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class VehicleStatus(StrEnum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    SOLD = "SOLD"


class InventoryType(StrEnum):
    """Fleet units get generated ``F####`` stock numbers; premiere units keep their own."""

    FLEET = "FLEET"
    PREMIERE = "PREMIERE"

    @classmethod
    def parse(cls, value: Any) -> InventoryType:
        return cls.PREMIERE if str(value or "").strip().upper() == cls.PREMIERE else cls.FLEET


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def split_features(value: Any, separators: str = "|") -> list[str]:
    """Features arrive as a list or as one delimited string."""
    if not value:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        text = value
        for sep in separators[1:]:
            text = text.replace(sep, separators[0])
        return [item.strip() for item in text.split(separators[0]) if item.strip()]
    return []


class Vehicle(BaseModel):
    """A vehicle in the dealership inventory."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    make: str
    model: str
    year: int
    trim: str | None = None
    vin: str
    stock_number: str | None = None
    series: str | None = None
    equipment: str | None = None
    price: float
    original_price: float | None = None
    mileage: int = 0
    exterior_color: str = ""
    interior_color: str | None = None
    transmission: str = ""
    drivetrain: str | None = None
    fuel_type: str = ""
    body_style: str = ""
    description: str | None = None
    features: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    city: str = "Toronto"
    province: str = "ON"
    postal_code: str | None = None
    featured: bool = False
    status: VehicleStatus = VehicleStatus.ACTIVE
    inventory_type: InventoryType = InventoryType.FLEET
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class VehicleCreate(BaseModel):
    """Fields accepted when adding a vehicle."""

    make: str
    model: str
    year: int
    vin: str
    price: float
    trim: str | None = None
    stock_number: str | None = None
    series: str | None = None
    equipment: str | None = None
    original_price: float | None = None
    mileage: int = 0
    exterior_color: str = ""
    interior_color: str | None = None
    transmission: str = ""
    drivetrain: str | None = None
    fuel_type: str = ""
    body_style: str = ""
    description: str | None = None
    features: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    city: str = "Toronto"
    province: str = "ON"
    postal_code: str | None = None
    featured: bool = False
    status: VehicleStatus = VehicleStatus.ACTIVE
    inventory_type: InventoryType = InventoryType.FLEET

    @field_validator("vin")
    @classmethod
    def _upper_vin(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("VIN is required")
        return v

    @field_validator("features", mode="before")
    @classmethod
    def _features(cls, v: Any) -> list[str]:
        return split_features(v)

    @field_validator("inventory_type", mode="before")
    @classmethod
    def _inventory_type(cls, v: Any) -> InventoryType:
        return InventoryType.parse(v)

    @field_validator(
        "trim", "stock_number", "interior_color", "drivetrain", "description", "postal_code",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v


# Required text fields: a blank value in an update keeps what is stored
KEEP_WHEN_BLANK = frozenset({
    "make", "model", "vin", "exterior_color", "transmission", "fuel_type",
    "body_style", "city", "province",
})


class VehicleUpdate(BaseModel):
    """Full-form edit. ``images`` are appended after ``existing_images``."""

    make: str | None = None
    model: str | None = None
    year: int | None = None
    trim: str | None = None
    vin: str | None = None
    price: float | None = None
    original_price: float | None = None
    mileage: int | None = None
    exterior_color: str | None = None
    interior_color: str | None = None
    transmission: str | None = None
    drivetrain: str | None = None
    fuel_type: str | None = None
    body_style: str | None = None
    description: str | None = None
    features: list[str] | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    featured: bool | None = None
    status: VehicleStatus | None = None
    existing_images: list[str] | None = None
    images: list[str] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _blank_status(cls, v: Any) -> Any:
        return v or None

    @field_validator("features", mode="before")
    @classmethod
    def _features(cls, v: Any) -> list[str] | None:
        if not v:
            return None
        return split_features(v)

    def apply(self, vehicle: Vehicle) -> dict[str, Any]:
        """Column changes for ``vehicle``; zero and blank numbers keep stored values."""
        changes: dict[str, Any] = {}
        for name, value in self.model_dump(exclude={"existing_images", "images"}).items():
            if name not in self.model_fields_set or value is None:
                continue
            if name in KEEP_WHEN_BLANK and value == "":
                continue
            if name in ("year", "price", "original_price", "mileage") and not value:
                continue
            changes[name] = value
        if "vin" in changes:
            changes["vin"] = changes["vin"].strip().upper()

        images = list(self.existing_images) if self.existing_images is not None else list(vehicle.images)
        changes["images"] = images + list(self.images)
        return changes


class VehiclePatch(BaseModel):
    """Quick edit from the inventory list: status, image order, featured flag."""

    status: VehicleStatus | None = None
    images: list[str] | None = None
    featured: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class VehicleFilter(BaseModel):
    """List query. Status defaults to ``ACTIVE``."""

    search: str | None = None
    make: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_year: int | None = None
    max_year: int | None = None
    body_style: str | None = None
    status: VehicleStatus = VehicleStatus.ACTIVE
    inventory_type: InventoryType | None = None
    sort_by: str | None = None
    sort_order: str = "desc"
    limit: int | None = Field(default=None, ge=1)
