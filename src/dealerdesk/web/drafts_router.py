"""Draft cache endpoints: last-resort prefill for unsaved forms."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

router = APIRouter()


def _get_draft_cache(request: Request):
    cache = getattr(request.app.state, "draft_cache", None)
    if cache is None:
        raise HTTPException(status_code=503, detail="Draft cache not available")
    return cache


@router.get("/api/drafts/{key}")
async def get_draft(key: str, request: Request) -> dict[str, Any]:
    cache = _get_draft_cache(request)
    value = cache.get(key)
    if value is None:
        raise HTTPException(status_code=404, detail=f"Draft {key!r} not found")
    return {"key": key, "draft": value}


@router.put("/api/drafts/{key}")
async def put_draft(key: str, request: Request, draft: Any = Body(...)) -> dict[str, Any]:
    cache = _get_draft_cache(request)
    cache.put(key, draft)
    return {"key": key, "stored": True}


@router.delete("/api/drafts/{key}")
async def delete_draft(key: str, request: Request) -> dict[str, Any]:
    cache = _get_draft_cache(request)
    return {"key": key, "deleted": cache.delete(key)}
