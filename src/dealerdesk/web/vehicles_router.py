"""Vehicle inventory API router: listing, CRUD, photos and bulk import."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from dealerdesk.core.errors import DuplicateVinError, RecordNotFoundError
from dealerdesk.inventory.images import normalize_images, remove_image
from dealerdesk.inventory.importer import TEMPLATE_CSV, ImportRowResult, plan_import, read_sheet
from dealerdesk.inventory.models import (
    InventoryType,
    VehicleCreate,
    VehicleFilter,
    VehiclePatch,
    VehicleStatus,
    VehicleUpdate,
)
from dealerdesk.repositories import resolve
from dealerdesk.web.webhook_router import _decode_file

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vehicles")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class PhotosRequest(BaseModel):
    photos: list[str] = Field(default_factory=list)


class PhotoDeleteRequest(BaseModel):
    photo_path: str = ""


class ImportRequest(BaseModel):
    """A CSV or XLSX inventory sheet, base64-encoded."""

    file_base64: str
    filename: str = "inventory.csv"
    inventory_type: str = InventoryType.FLEET.value


def _get_vehicle_store(request: Request):
    store = getattr(request.app.state, "vehicle_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Vehicle store not available")
    return store


async def _require_vehicle(store, vehicle_id: str):
    vehicle = await resolve(store.get_vehicle(vehicle_id))
    if vehicle is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle


async def _apply(store, vehicle_id: str, changes: dict[str, Any]):
    try:
        return await resolve(store.update_vehicle(vehicle_id, changes))
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateVinError as e:
        raise HTTPException(status_code=400, detail=e.message)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("")
async def api_list_vehicles(
    request: Request,
    search: str | None = None,
    make: str | None = None,
    min_price: float | None = Query(default=None, alias="minPrice"),
    max_price: float | None = Query(default=None, alias="maxPrice"),
    min_year: int | None = Query(default=None, alias="minYear"),
    max_year: int | None = Query(default=None, alias="maxYear"),
    body_style: str | None = Query(default=None, alias="bodyStyle"),
    status: VehicleStatus = VehicleStatus.ACTIVE,
    inventory_type: str | None = Query(default=None, alias="inventoryType"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
    limit: int | None = Query(default=None, ge=1),
) -> dict[str, Any]:
    """Vehicles matching the filters; active stock, featured and newest first by default."""
    store = _get_vehicle_store(request)
    query = VehicleFilter(
        search=search,
        make=make,
        min_price=min_price,
        max_price=max_price,
        min_year=min_year,
        max_year=max_year,
        body_style=body_style,
        status=status,
        inventory_type=InventoryType.parse(inventory_type) if inventory_type else None,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
    )
    try:
        vehicles = await resolve(store.list_vehicles(query))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "vehicles": [v.model_dump(mode="json") for v in vehicles],
        "count": len(vehicles),
    }


@router.get("/template/csv")
async def api_import_template() -> Response:
    return Response(
        content=TEMPLATE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="vehicle_import_template.csv"'},
    )


@router.post("/import")
async def api_import_vehicles(body: ImportRequest, request: Request) -> dict[str, Any]:
    """Create vehicles from an uploaded sheet, reporting each row's outcome."""
    store = _get_vehicle_store(request)
    content = _decode_file(body.file_base64, "file")
    try:
        rows = read_sheet(content, body.filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not rows:
        raise HTTPException(status_code=400, detail="No rows found in uploaded file")

    plan = plan_import(
        rows,
        InventoryType.parse(body.inventory_type),
        existing_vins=await resolve(store.existing_vins()),
        next_stock_number=await resolve(store.next_stock_number()),
    )

    results: list[ImportRowResult] = list(plan.rejected)
    for planned in plan.planned:
        data = planned.vehicle
        try:
            await resolve(store.create_vehicle(data))
        except DuplicateVinError:
            results.append(ImportRowResult(
                row=planned.row, success=False, vin=data.vin, error="VIN already exists",
            ))
            continue
        results.append(ImportRowResult(
            row=planned.row, success=True, vin=data.vin, make=data.make, model=data.model,
        ))
    results.sort(key=lambda r: r.row)

    successful = sum(1 for r in results if r.success)
    failed = len(results) - successful
    logger.info("Vehicle import from %s: %d successful, %d failed", body.filename, successful, failed)
    return {
        "message": f"Import completed: {successful} successful, {failed} failed",
        "summary": {"total": len(rows), "successful": successful, "failed": failed},
        "results": [r.model_dump(exclude_none=True) for r in results],
    }


@router.get("/{vehicle_id}")
async def api_get_vehicle(vehicle_id: str, request: Request) -> dict[str, Any]:
    store = _get_vehicle_store(request)
    vehicle = await _require_vehicle(store, vehicle_id)
    return vehicle.model_dump(mode="json")


@router.post("", status_code=201)
async def api_create_vehicle(body: VehicleCreate, request: Request) -> dict[str, Any]:
    store = _get_vehicle_store(request)
    try:
        vehicle = await resolve(store.create_vehicle(body))
    except DuplicateVinError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return vehicle.model_dump(mode="json")


@router.put("/{vehicle_id}")
async def api_update_vehicle(vehicle_id: str, body: VehicleUpdate, request: Request) -> dict[str, Any]:
    """Full-form edit; blank fields keep their stored values."""
    store = _get_vehicle_store(request)
    vehicle = await _require_vehicle(store, vehicle_id)
    updated = await _apply(store, vehicle_id, body.apply(vehicle))
    return updated.model_dump(mode="json")


@router.patch("/{vehicle_id}")
async def api_patch_vehicle(vehicle_id: str, body: VehiclePatch, request: Request) -> dict[str, Any]:
    store = _get_vehicle_store(request)
    updated = await _apply(store, vehicle_id, body.changes())
    return updated.model_dump(mode="json")


@router.delete("/{vehicle_id}")
async def api_delete_vehicle(vehicle_id: str, request: Request) -> dict[str, str]:
    store = _get_vehicle_store(request)
    try:
        await resolve(store.delete_vehicle(vehicle_id))
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Vehicle deleted successfully"}


@router.post("/{vehicle_id}/photos")
async def api_add_photos(vehicle_id: str, body: PhotosRequest, request: Request) -> dict[str, Any]:
    """Append uploaded photo URLs to the vehicle's gallery."""
    store = _get_vehicle_store(request)
    photos = normalize_images(body.photos)
    if not photos:
        raise HTTPException(status_code=400, detail="No photos provided")
    vehicle = await _require_vehicle(store, vehicle_id)
    updated = await _apply(store, vehicle_id, {"images": list(vehicle.images) + photos})
    return {
        "message": f"{len(photos)} photo(s) uploaded successfully",
        "photos": photos,
        "totalPhotos": len(updated.images),
        "vehicle": updated.model_dump(mode="json"),
    }


@router.delete("/{vehicle_id}/photos")
async def api_delete_photo(
    vehicle_id: str, body: PhotoDeleteRequest, request: Request
) -> dict[str, Any]:
    store = _get_vehicle_store(request)
    if not body.photo_path.strip():
        raise HTTPException(status_code=400, detail="Photo path is required")
    vehicle = await _require_vehicle(store, vehicle_id)
    updated = await _apply(store, vehicle_id, {"images": remove_image(vehicle.images, body.photo_path)})
    return {"message": "Photo deleted successfully", "vehicle": updated.model_dump(mode="json")}
