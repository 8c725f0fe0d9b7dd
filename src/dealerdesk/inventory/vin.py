"""VIN validation and normalization of VIN-decode webhook replies."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from dealerdesk.bridge.envelope import resolve_envelope

MIN_VIN_LENGTH = 5

# (decode label, flat-key fallbacks)
_FIELDS: dict[str, tuple[str, tuple[str, ...]]] = {
    "make": ("Make", ("make",)),
    "model": ("Model", ("model",)),
    "year": ("Model Year", ("year",)),
    "body": ("Body", ("body style",)),
    "trim": ("Trim", ("trim",)),
    "drive": ("Drive", ("drivetrain",)),
    "cylinders": ("Engine Cylinders", ("cylinders",)),
    "fuel_type": ("Fuel Type - Primary", ("fuel type",)),
    "transmission": ("Transmission", ("transmission",)),
    "doors": ("Number of Doors", ("doors",)),
    "engine": ("Engine Model", ("engine",)),
    "stock_number": ("", ("stock number (unit id)",)),
}

_BODY_STYLES = [
    ("pickup", "Truck"),
    ("suv", "SUV"),
    ("truck", "Truck"),
    ("coupe", "Coupe"),
    ("hatch", "Hatchback"),
    ("wagon", "Wagon"),
    ("van", "Van"),
    ("convertible", "Convertible"),
    ("sedan", "Sedan"),
]


class DecodedVehicle(BaseModel):
    """Vehicle attributes prefilled from a VIN decode."""

    make: str = ""
    model: str = ""
    year: int | None = None
    body_style: str = ""
    trim: str = ""
    drivetrain: str = ""
    cylinders: str = ""
    fuel_type: str = ""
    transmission: str = ""
    doors: str = ""
    engine: str = ""
    stock_number: str = ""


def validate_vin(vin: Any) -> str:
    """Return the trimmed VIN or raise ``ValueError("Invalid VIN")``."""
    value = str(vin or "").strip()
    if len(value) < MIN_VIN_LENGTH:
        raise ValueError("Invalid VIN")
    return value


def map_body_style(value: str | None) -> str:
    if not value:
        return ""
    lowered = value.lower()
    for needle, style in _BODY_STYLES:
        if needle in lowered:
            return style
    return ""


def map_drive(value: str | None) -> str:
    if not value:
        return ""
    upper = value.upper()
    if "4WD" in upper or "4X4" in upper:
        return "4WD"
    for drive in ("AWD", "RWD", "FWD"):
        if drive in upper:
            return drive
    return ""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_vin_decode(raw: Any) -> DecodedVehicle:
    """Map a decode reply onto :class:`DecodedVehicle`.

    Labelled ``decode`` entries win; flat keys (matched case-insensitively,
    ignoring surrounding whitespace) fill the gaps.
    """
    record = resolve_envelope(raw).payload
    entries = record.get("decode") if isinstance(record.get("decode"), list) else []
    by_label = {
        entry.get("label"): entry.get("value")
        for entry in reversed(entries)
        if isinstance(entry, dict)
    }
    flat = {str(key).strip().lower(): value for key, value in record.items()}

    values: dict[str, str] = {}
    for field, (label, fallbacks) in _FIELDS.items():
        value = _text(by_label.get(label)) if label else ""
        for key in fallbacks:
            if value:
                break
            value = _text(flat.get(key))
        values[field] = value

    try:
        year = int(float(values["year"])) if values["year"] else None
    except ValueError:
        year = None

    return DecodedVehicle(
        make=values["make"],
        model=values["model"],
        year=year or None,
        body_style=map_body_style(values["body"]),
        trim=values["trim"],
        drivetrain=map_drive(values["drive"]),
        cylinders=values["cylinders"],
        fuel_type=values["fuel_type"],
        transmission=values["transmission"],
        doors=values["doors"],
        engine=values["engine"],
        stock_number=values["stock_number"],
    )
