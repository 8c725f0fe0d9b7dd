"""FastAPI router for workflow webhook endpoints."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dealerdesk.bridge.models import WebhookOperation, WebhookRequest, WebhookResponse
from dealerdesk.bridge.payloads import clean_payload
from dealerdesk.core.errors import MalformedResponseError
from dealerdesk.inventory.images import normalize_images, remove_image
from dealerdesk.inventory.vin import normalize_vin_decode, validate_vin
from dealerdesk.verification.scan import normalize_license_scan
from dealerdesk.worksheet.costs import CostLineItem, summarize_costs

logger = logging.getLogger(__name__)

router = APIRouter()


class VinRequest(BaseModel):
    vin: str = ""


class ScanRequest(BaseModel):
    """A license photo, base64-encoded."""

    image_base64: str
    filename: str = "license.jpg"
    content_type: str = "image/jpeg"


class CostsSaveRequest(BaseModel):
    vehicle_id: str
    items: list[CostLineItem] = Field(default_factory=list)


class ImageUploadRequest(BaseModel):
    vehicle_id: str
    image_base64: str
    filename: str = "image.jpg"
    content_type: str = "image/jpeg"


class MediaDeleteRequest(BaseModel):
    vehicle_id: str
    url: str
    images: Any = None


class EmailRequest(BaseModel):
    email: str = ""
    deal_id: str = ""
    link: str = ""
    file_base64: str = ""
    file_name: str = "Bill_of_Sale.pdf"


def _get_adapter(request: Request):
    registry = getattr(request.app.state, "adapter_registry", None)
    adapter = registry.default if registry is not None else None
    if adapter is None:
        raise HTTPException(status_code=503, detail="Webhook adapter not available")
    return adapter


def _decode_file(data: str, label: str) -> bytes:
    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail=f"{label.capitalize()} is not valid base64")
    if not content:
        raise HTTPException(status_code=400, detail=f"Missing {label}")
    return content


def save_response(response: WebhookResponse, **extra: Any) -> JSONResponse:
    """Structured ``{"status": "ok" | "error"}`` body for a save-type reply."""
    if response.success:
        message = response.data.get("message", "") if isinstance(response.data, dict) else ""
        return JSONResponse({
            "status": "ok",
            "message": message,
            "stale": response.stale,
            "request_id": response.request_id,
            **extra,
        })
    return JSONResponse(
        {
            "status": "error",
            "message": response.error or "Save failed",
            "stale": response.stale,
            "request_id": response.request_id,
            **extra,
        },
        status_code=502,
    )


# --- Adapter introspection ---


@router.get("/api/webhooks/adapters")
async def list_adapters(request: Request) -> list[dict[str, Any]]:
    """List all registered adapters with health status."""
    registry = request.app.state.adapter_registry
    return [s.model_dump() for s in registry.list_adapters()]


@router.get("/api/webhooks/adapters/{name}/health")
async def adapter_health(name: str, request: Request) -> dict[str, Any]:
    registry = request.app.state.adapter_registry
    adapter = registry.get(name)
    if adapter is None:
        raise HTTPException(status_code=404, detail=f"Adapter {name!r} not found")
    return {"name": name, "status": adapter.health_check()}


# --- Data operations ---


@router.post("/api/vincode")
async def decode_vin(body: VinRequest, request: Request) -> dict[str, Any]:
    """Decode a VIN through the workflow and map it onto vehicle fields."""
    try:
        vin = validate_vin(body.vin)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    adapter = _get_adapter(request)
    response = await adapter.send(WebhookRequest(
        operation=WebhookOperation.DECODE_VIN,
        payload={"vin": vin},
        resource=f"vin:{vin}",
    ))
    if not response.success:
        raise HTTPException(status_code=502, detail=response.error)
    try:
        vehicle = normalize_vin_decode(response.data)
    except MalformedResponseError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"vin": vin, "vehicle": vehicle.model_dump(), "stale": response.stale}


@router.post("/api/scan")
async def scan_license(body: ScanRequest, request: Request) -> dict[str, Any]:
    """Send a license photo to the OCR workflow and return the extracted fields."""
    content = _decode_file(body.image_base64, "image")

    adapter = _get_adapter(request)
    response = await adapter.send(WebhookRequest(
        operation=WebhookOperation.SCAN_LICENSE,
        files={"file": (body.filename, content, body.content_type)},
    ))
    if not response.success:
        raise HTTPException(status_code=502, detail=response.error)
    try:
        scan = normalize_license_scan(response.data)
    except MalformedResponseError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return scan.model_dump()


# --- Save operations ---


@router.post("/api/costs")
async def save_costs(body: CostsSaveRequest, request: Request) -> JSONResponse:
    """Price the vehicle's cost lines and forward them to the costs workflow."""
    adapter = _get_adapter(request)
    calculator = getattr(request.app.state, "worksheet_calculator", None)
    try:
        summary = summarize_costs(body.items, calculator.table if calculator else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    payload = {
        "vehicle_id": body.vehicle_id,
        "items": [item.model_dump() for item in body.items],
        "lines": [line.model_dump() for line in summary.lines],
        "subtotal": summary.subtotal,
        "tax": summary.tax,
        "total": summary.total,
    }
    response = await adapter.send(WebhookRequest(
        operation=WebhookOperation.SAVE_COSTS,
        payload=payload,
        resource=f"costs:{body.vehicle_id}",
    ))
    return save_response(response, total=summary.total)


async def _forward_form(
    request: Request,
    operation: WebhookOperation,
    resource_prefix: str,
) -> JSONResponse:
    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Body must be JSON")
    if not isinstance(data, dict) or not data:
        raise HTTPException(status_code=400, detail="Body must be a non-empty JSON object")

    adapter = _get_adapter(request)
    payload = clean_payload(data)
    record_id = payload.get("id") or payload.get("vehicle_id") or payload.get("deal_id")
    response = await adapter.send(WebhookRequest(
        operation=operation,
        payload=payload,
        resource=f"{resource_prefix}:{record_id}" if record_id else "",
    ))
    return save_response(response)


@router.post("/api/purchase")
async def save_purchase(request: Request) -> JSONResponse:
    """Forward a vehicle purchase form; blank fields are sent as null."""
    return await _forward_form(request, WebhookOperation.SAVE_PURCHASE, "purchase")


@router.post("/api/delivery")
async def save_delivery(request: Request) -> JSONResponse:
    return await _forward_form(request, WebhookOperation.SAVE_DELIVERY, "delivery")


@router.post("/api/credit-app")
async def submit_credit_app(request: Request) -> JSONResponse:
    return await _forward_form(request, WebhookOperation.SUBMIT_CREDIT_APP, "credit")


# --- Inventory and media ---


@router.post("/api/inventory/add")
async def add_inventory(request: Request) -> dict[str, Any]:
    """Create an inventory vehicle through the workflow and return the stored row."""
    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Body must be JSON")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")

    payload = clean_payload(data)
    if "images" in payload:
        payload["images"] = normalize_images(payload["images"])

    adapter = _get_adapter(request)
    response = await adapter.send(WebhookRequest(
        operation=WebhookOperation.ADD_INVENTORY,
        payload=payload,
    ))
    if not response.success:
        raise HTTPException(status_code=502, detail=response.error)
    return {"vehicle": response.data}


@router.post("/api/image")
async def upload_image(body: ImageUploadRequest, request: Request) -> JSONResponse:
    content = _decode_file(body.image_base64, "image")
    adapter = _get_adapter(request)
    response = await adapter.send(WebhookRequest(
        operation=WebhookOperation.UPLOAD_IMAGE,
        payload={"vehicle_id": body.vehicle_id},
        files={"file": (body.filename, content, body.content_type)},
        resource=f"images:{body.vehicle_id}",
    ))
    return save_response(response)


@router.post("/api/delete")
async def delete_media(body: MediaDeleteRequest, request: Request) -> JSONResponse:
    """Delete one stored image and return the remaining list."""
    adapter = _get_adapter(request)
    response = await adapter.send(WebhookRequest(
        operation=WebhookOperation.DELETE_MEDIA,
        payload={"vehicle_id": body.vehicle_id, "url": body.url},
        resource=f"images:{body.vehicle_id}",
    ))
    images = normalize_images(body.images)
    if response.success:
        images = remove_image(images, body.url)
    return save_response(response, images=images)


@router.post("/api/email")
async def send_email(body: EmailRequest, request: Request) -> JSONResponse:
    """Email a signed document (e.g. the bill of sale) to the customer."""
    email = body.email.strip()
    if not email:
        raise HTTPException(status_code=400, detail="Missing email")
    content = _decode_file(body.file_base64, "file")

    payload = {"email": email}
    if body.deal_id.strip():
        payload["dealId"] = body.deal_id.strip()
    if body.link.strip():
        payload["link"] = body.link.strip()

    adapter = _get_adapter(request)
    response = await adapter.send(WebhookRequest(
        operation=WebhookOperation.SEND_EMAIL,
        payload=payload,
        files={"file": (body.file_name, content, "application/pdf")},
    ))
    return save_response(response)
