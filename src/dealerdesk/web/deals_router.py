"""Deals API router: sub-record CRUD, listing and worksheet saves."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from dealerdesk.bridge.models import WebhookOperation, WebhookRequest
from dealerdesk.core.errors import RecordNotFoundError, UnknownTableError, VersionConflictError
from dealerdesk.deals.models import DealTable
from dealerdesk.repositories import resolve
from dealerdesk.web.webhook_router import save_response
from dealerdesk.web.worksheet_router import SummaryRequest
from dealerdesk.worksheet.summary import resolve_sell_price, worksheet_row

router = APIRouter()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class InsertRequest(BaseModel):
    table: str
    data: dict[str, Any]
    deal_id: str | int | None = None


class UpdateRequest(BaseModel):
    table: str
    id: str | int
    data: dict[str, Any]
    expected_version: int | None = None


class DeleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deal_id: str | int = Field(alias="dealId")


class WorksheetSaveRequest(SummaryRequest):
    expected_version: int | None = None


def _get_deal_store(request: Request):
    store = getattr(request.app.state, "deal_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Deal store not available")
    return store


def _conflict(exc: VersionConflictError) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={"message": exc.message, "expected": exc.expected, "actual": exc.actual},
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/api/deals")
async def api_list_deals(request: Request) -> dict[str, Any]:
    """Combined deal list, one row per customer record, newest first."""
    store = _get_deal_store(request)
    rows = await resolve(store.list_deals())
    return {"deals": [row.model_dump(mode="json") for row in rows]}


@router.post("/api/deals")
async def api_allocate_deal(request: Request) -> dict[str, Any]:
    """Reserve a fresh deal id for a new deal."""
    store = _get_deal_store(request)
    deal_id = await resolve(store.allocate_deal_id())
    return {"deal_id": deal_id}


@router.post("/api/deals/insert")
async def api_insert(body: InsertRequest, request: Request) -> dict[str, Any]:
    store = _get_deal_store(request)
    deal_id = body.deal_id or body.data.get("id") or body.data.get("dealid")
    if not deal_id:
        raise HTTPException(status_code=400, detail="Missing deal id")
    try:
        record = await resolve(store.insert(body.table, str(deal_id), body.data))
    except UnknownTableError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "inserted": 1,
        "rows": [record.data],
        "version": record.version,
    }


@router.post("/api/deals/update")
async def api_update(body: UpdateRequest, request: Request) -> dict[str, Any]:
    store = _get_deal_store(request)
    try:
        rows = await resolve(
            store.update(body.table, str(body.id), body.data, expected_version=body.expected_version)
        )
    except UnknownTableError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except VersionConflictError as e:
        raise _conflict(e)
    return {"success": True, "updated": len(rows), "version": rows[0].version}


@router.post("/api/deals/delete")
async def api_delete(body: DeleteRequest, request: Request) -> dict[str, Any]:
    """Delete every sub-record of a deal."""
    store = _get_deal_store(request)
    counts = await resolve(store.delete_deal(str(body.deal_id)))
    return {"success": True, "deleted": str(body.deal_id), "details": counts}


@router.get("/api/deals/{deal_id}")
async def api_get_deal(deal_id: str, request: Request) -> dict[str, Any]:
    store = _get_deal_store(request)
    bundle = await resolve(store.get_deal(deal_id))
    if bundle is None:
        raise HTTPException(status_code=404, detail=f"Deal {deal_id!r} not found")
    return bundle.model_dump(mode="json")


@router.post("/api/deals/{deal_id}/worksheet/save")
async def api_save_worksheet(
    deal_id: str, body: WorksheetSaveRequest, request: Request
) -> JSONResponse:
    """Recompute, persist and forward a deal worksheet.

    A zero purchase price is filled from the deal's first vehicle. The
    worksheet webhook must confirm the save; an HTTP 2xx alone is not enough.
    """
    store = _get_deal_store(request)
    calculator = getattr(request.app.state, "worksheet_calculator", None)
    if calculator is None:
        raise HTTPException(status_code=503, detail="Worksheet calculator not available")

    bundle = await resolve(store.get_deal(deal_id))
    inputs = body.inputs
    if inputs.purchase_price == 0 and bundle is not None and bundle.vehicles:
        price = resolve_sell_price(bundle.vehicles[0].data)
        if price > 0:
            inputs = inputs.model_copy(update={"purchase_price": price})

    try:
        totals = calculator.calculate(inputs)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    row = worksheet_row(deal_id, inputs, totals, body.extras())

    try:
        if bundle is not None and bundle.worksheet is not None:
            records = await resolve(store.update(
                DealTable.WORKSHEET, deal_id, row, expected_version=body.expected_version,
            ))
            version = records[0].version
        else:
            record = await resolve(store.insert(DealTable.WORKSHEET, deal_id, row))
            version = record.version
    except VersionConflictError as e:
        raise _conflict(e)

    registry = getattr(request.app.state, "adapter_registry", None)
    adapter = registry.default if registry is not None else None
    totals_out = totals.rounded().model_dump(mode="json")
    if adapter is None:
        return JSONResponse({
            "status": "ok",
            "message": "Saved; no workflow configured",
            "version": version,
            "totals": totals_out,
        })

    response = await adapter.send(WebhookRequest(
        operation=WebhookOperation.SAVE_WORKSHEET,
        payload=row,
        resource=f"worksheet:{deal_id}",
    ))
    return save_response(response, version=version, totals=totals_out)
