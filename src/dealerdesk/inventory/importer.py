"""Bulk vehicle import from CSV or Excel inventory sheets.

Rows are normalized to snake_case columns (with aliases such as ``msrp`` →
``price``), abbreviated make/model codes are expanded, and the free-text
``equipment`` column is mined for trim, drivetrain, body style and features.
Premiere sheets carry a ``unit`` column like ``"2011 TOYOTA SIENNA - 1000"``.

``plan_import`` validates every row without touching storage; the caller
creates the planned vehicles and reports the per-row results.
"""

from __future__ import annotations

import csv
import io
import logging
import re
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import openpyxl
import yaml
from pydantic import BaseModel, Field, ValidationError

from dealerdesk.inventory.models import InventoryType, VehicleCreate, split_features
from dealerdesk.inventory.records import fleet_stock_number

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_CODES_PATH = _PROJECT_ROOT / "config" / "vehicle_codes.yml"

HEADER_ALIASES: dict[str, str] = {
    "unit_id": "stock_number",
    "unitid": "stock_number",
    "stocknumber": "stock_number",
    "stock": "stock_number",
    "kilometers": "mileage",
    "ext_color": "exterior_color",
    "extcolor": "exterior_color",
    "exteriorcolour": "exterior_color",
    "exteriorcolor": "exterior_color",
    "exterior_colour": "exterior_color",
    "interiorcolour": "interior_color",
    "interiorcolor": "interior_color",
    "bodystyle": "body_style",
    "modelyear": "year",
    "year_built": "year",
    "saleprice": "price",
    "selling_price": "price",
    "sellingprice": "price",
    "msrp": "price",
    "originalprice": "original_price",
    "purchase_price": "original_price",
    "purchaseprice": "original_price",
    "postalcode": "postal_code",
    "fueltype": "fuel_type",
    "equip": "equipment",
}

TEMPLATE_CSV = (
    "stock_number,make,model,year,series,trim,vin,price,original_price,mileage,"
    "exterior_color,interior_color,transmission,drivetrain,fuel_type,body_style,"
    "equipment,description,features,city,province,postal_code\n"
    "8FDJTG,AUDI,A3,2024,40K4,,WAUGUCGY2RA065548,29100,,78215,SILVER,,Automatic,AWD,"
    "Gas,Sedan,A3 40 KOMFORT AWD SEDAN,Well maintained luxury sedan,"
    "Backup Camera|Bluetooth|Apple CarPlay|Heated Seats,Toronto,Ontario,M5V 1A1\n"
)

_NON_KEY = re.compile(r"[^a-z0-9]+")
_UNIT_STOCK = re.compile(r"-\s*(\d+)$")
_LEADING_DECIMAL = re.compile(r"\d+\.?\d*|\.\d+")
_TRIM = re.compile(r"^([A-Z0-9\s]+?)(?:\s+AWD|\s+4WD|\s+FWD|\s+RWD|$)", re.IGNORECASE)

_EQUIPMENT_BODY_STYLES = [
    (("SEDAN",), "Sedan"),
    (("SUV",), "SUV"),
    (("COUPE",), "Coupe"),
    (("TRUCK", "CREW", "PICKUP"), "Truck"),
    (("VAN", "CARGO", "CARAVAN"), "Van"),
    (("WAGON",), "Wagon"),
    (("HATCHBACK",), "Hatchback"),
    (("CONVERTIBLE",), "Convertible"),
]

_EQUIPMENT_FEATURES = [
    (("ROOF",), "Sunroof"),
    (("NAV",), "Navigation"),
    (("LTHR", "LEATHER"), "Leather Interior"),
    (("HEATED",), "Heated Seats"),
    (("PREM",), "Premium Package"),
]


class VehicleCodes:
    """Make/model code expansion and body-style lookups from ``vehicle_codes.yml``."""

    def __init__(self, config_path: str | Path | None = None) -> None:
        path = Path(config_path) if config_path else _DEFAULT_CODES_PATH
        if not path.is_absolute():
            path = _PROJECT_ROOT / path
        raw: dict[str, Any] = {}
        if path.exists():
            with open(path) as fh:
                raw = yaml.safe_load(fh) or {}
        else:
            logger.warning("Vehicle code table %s not found; codes are not expanded", path)

        self._makes = {str(k).upper(): str(v) for k, v in (raw.get("makes") or {}).items()}
        self._models = {str(k).upper(): str(v) for k, v in (raw.get("models") or {}).items()}
        self._model_styles = {
            str(model).upper(): style
            for style, models in (raw.get("body_style_models") or {}).items()
            for model in models
        }
        self._keywords = [
            (style, [str(word).upper() for word in words])
            for style, words in (raw.get("body_style_keywords") or [])
        ]

    def expand_make(self, make: str) -> str:
        return self._makes.get(make.strip().upper(), make)

    def expand_model(self, model: str) -> str:
        return self._models.get(model.strip().upper(), model)

    def style_for_model(self, model: str | None) -> str | None:
        return self._model_styles.get((model or "").upper())

    def style_from_keywords(self, model: str | None) -> str:
        upper = (model or "").upper()
        for style, words in self._keywords:
            if any(word in upper for word in words):
                return style
        return ""


def normalize_row(row: dict[str, Any]) -> dict[str, Any]:
    """snake_case the headers, apply aliases, trim string values."""
    normalized: dict[str, Any] = {}
    for raw_key, raw_value in row.items():
        if not raw_key:
            continue
        key = _NON_KEY.sub("_", str(raw_key).lower()).strip("_")
        value = raw_value.strip() if isinstance(raw_value, str) else ("" if raw_value is None else raw_value)
        normalized[HEADER_ALIASES.get(key, key)] = value
    return normalized


def clean_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _LEADING_DECIMAL.match(re.sub(r"[^0-9.]", "", value))
        return float(match.group()) if match else None
    return None


def clean_integer(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        digits = re.sub(r"[^0-9]", "", value)
        return int(digits) if digits else None
    return None


def _text(row: dict[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value).strip()


def parse_unit(unit: str, current_year: int) -> tuple[int, str, str] | None:
    """``"2011 TOYOTA SIENNA - 1000"`` → ``(2011, "TOYOTA", "SIENNA")``."""
    parts = re.sub(r"\s*-\s*\d+$", "", unit).strip().split()
    if len(parts) < 3 or not parts[0].isdigit():
        return None
    year = int(parts[0])
    if year < 1990 or year > current_year + 2:
        return None
    return year, parts[1], " ".join(parts[2:])


def drivetrain_from_text(text: str | None) -> str | None:
    upper = (text or "").upper()
    if "AWD" in upper:
        return "AWD"
    if "4WD" in upper or "4X4" in upper:
        return "4WD"
    if "FWD" in upper:
        return "FWD"
    if "RWD" in upper or "2WD" in upper:
        return "RWD"
    return None


class EquipmentInfo(BaseModel):
    trim: str | None = None
    drivetrain: str | None = None
    body_style: str | None = None
    description: str | None = None
    features: list[str] = Field(default_factory=list)


def parse_equipment(equipment: str | None, model: str | None, codes: VehicleCodes) -> EquipmentInfo:
    """Mine an auction ``equipment`` string such as ``"A3 40 KOMFORT AWD SEDAN"``."""
    if not equipment:
        return EquipmentInfo()
    upper = equipment.upper()

    body_style = next(
        (style for needles, style in _EQUIPMENT_BODY_STYLES if any(n in upper for n in needles)),
        None,
    )
    trim = _TRIM.match(equipment)
    return EquipmentInfo(
        trim=trim.group(1).strip() if trim else None,
        drivetrain=drivetrain_from_text(upper),
        body_style=body_style or codes.style_for_model(model),
        description=f"{equipment.strip()} - Well maintained vehicle with quality features",
        features=[name for needles, name in _EQUIPMENT_FEATURES if any(n in upper for n in needles)],
    )


class ImportRowResult(BaseModel):
    row: int
    success: bool
    vin: str = "N/A"
    make: str | None = None
    model: str | None = None
    error: str | None = None


class PlannedVehicle(BaseModel):
    row: int
    vehicle: VehicleCreate


class ImportPlan(BaseModel):
    planned: list[PlannedVehicle] = Field(default_factory=list)
    rejected: list[ImportRowResult] = Field(default_factory=list)


def _placeholder_vin(row: dict[str, Any], unit_stock: str | None) -> str:
    stock = re.sub(r"^P", "", _text(row, "stock_number"), flags=re.IGNORECASE)
    stock = stock or unit_stock or datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"EDCPREMIERE{stock}{uuid.uuid4().hex[:4].upper()}"


def plan_import(
    rows: Iterable[dict[str, Any]],
    inventory_type: InventoryType,
    existing_vins: Iterable[str],
    next_stock_number: int,
    codes: VehicleCodes | None = None,
    current_year: int | None = None,
) -> ImportPlan:
    """Validate sheet rows and assign stock numbers.

    Row numbers count the header as row 1. Fleet rows are numbered
    ``F<next_stock_number>`` upward in sheet order; VINs already stored or
    seen earlier in the sheet are rejected.
    """
    codes = codes or VehicleCodes()
    current_year = current_year or date.today().year
    seen_vins = {vin.upper() for vin in existing_vins}
    plan = ImportPlan()

    for index, raw in enumerate(rows):
        row = normalize_row(raw)
        row_number = index + 2

        year: int | None = None
        make = model = unit_stock = None
        unit = row.get("unit")
        if unit and isinstance(unit, str):
            parsed = parse_unit(unit, current_year)
            if parsed:
                year, make, model = parsed[0], codes.expand_make(parsed[1]), parsed[2]
            stock_match = _UNIT_STOCK.search(unit)
            if stock_match:
                unit_stock = stock_match.group(1)

        if not make and _text(row, "make"):
            make = codes.expand_make(_text(row, "make"))
        if not model and _text(row, "model"):
            model = codes.expand_model(_text(row, "model"))
        if not year:
            year = clean_integer(row.get("year"))

        vin = _text(row, "vin").upper()
        if not vin and unit:
            vin = _placeholder_vin(row, unit_stock)
        if not vin:
            plan.rejected.append(ImportRowResult(row=row_number, success=False, error="Missing VIN"))
            continue
        if not (make and model and year):
            plan.rejected.append(ImportRowResult(
                row=row_number, success=False, vin=vin, error="Missing make, model, or year",
            ))
            continue
        if vin in seen_vins:
            plan.rejected.append(ImportRowResult(
                row=row_number, success=False, vin=vin, error="VIN already exists",
            ))
            continue
        price = clean_number(row.get("price"))
        if price is None:
            plan.rejected.append(ImportRowResult(
                row=row_number, success=False, vin=vin, error="Invalid price",
            ))
            continue

        equipment = parse_equipment(_text(row, "equipment") or None, model, codes)
        features = list(dict.fromkeys(equipment.features + split_features(row.get("features"), ",|")))

        if inventory_type == InventoryType.FLEET:
            stock_number = fleet_stock_number(next_stock_number)
            next_stock_number += 1
        else:
            stock_number = _text(row, "stock_number") or unit_stock

        trim = _text(row, "trim") or equipment.trim
        drivetrain = equipment.drivetrain or _text(row, "drivetrain") or drivetrain_from_text(trim)
        body_style = (
            equipment.body_style or _text(row, "body_style") or codes.style_from_keywords(model)
        )

        try:
            vehicle = VehicleCreate(
                make=make,
                model=model,
                year=year,
                trim=trim,
                vin=vin,
                stock_number=stock_number,
                series=_text(row, "series") or None,
                equipment=_text(row, "equipment") or None,
                price=price,
                original_price=clean_number(row.get("original_price")),
                mileage=clean_integer(row.get("mileage")) or 0,
                exterior_color=_text(row, "exterior_color"),
                interior_color=_text(row, "interior_color"),
                transmission=_text(row, "transmission"),
                drivetrain=drivetrain,
                fuel_type=_text(row, "fuel_type"),
                body_style=body_style,
                description=equipment.description or _text(row, "description"),
                features=features,
                city=_text(row, "city") or "Toronto",
                province=_text(row, "province") or "ON",
                postal_code=_text(row, "postal_code"),
                inventory_type=inventory_type,
            )
        except ValidationError as exc:
            plan.rejected.append(ImportRowResult(
                row=row_number, success=False, vin=vin, error=str(exc.errors()[0]["msg"]),
            ))
            continue

        seen_vins.add(vin)
        plan.planned.append(PlannedVehicle(row=row_number, vehicle=vehicle))

    return plan


def read_csv(content: bytes) -> list[dict[str, Any]]:
    reader = csv.DictReader(io.StringIO(content.decode("utf-8-sig"), newline=""))
    rows = []
    for row in reader:
        values = {k: (v.strip() if isinstance(v, str) else v) for k, v in row.items() if k}
        if any(v not in ("", None) for v in values.values()):
            rows.append(values)
    return rows


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def read_xlsx(content: bytes) -> list[dict[str, Any]]:
    """First sheet, first row as header; empty cells become ``""``."""
    wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        rows = list(wb.worksheets[0].iter_rows(values_only=True))
    finally:
        wb.close()
    if not rows:
        return []
    headers = ["" if h is None else str(h).strip() for h in rows[0]]
    records = []
    for values in rows[1:]:
        if all(v in ("", None) for v in values):
            continue
        records.append({
            header: _cell(value)
            for header, value in zip(headers, values)
            if header
        })
    return records


def read_sheet(content: bytes, filename: str) -> list[dict[str, Any]]:
    """Parse an uploaded sheet; raises ``ValueError`` when it cannot be read."""
    try:
        if filename.lower().endswith(".xlsx"):
            return read_xlsx(content)
        return read_csv(content)
    except Exception as exc:
        logger.warning("Bulk import parse error for %s: %s", filename, exc)
        raise ValueError("Unable to parse file. Please verify the template.") from exc
