"""Interpretation of save-type webhook replies.

Preferred contract: ``{"status": "ok" | "error", "message": "..."}``.
Webhooks that predate it answer with the bare text ``done``; that sentinel
is still accepted. An HTTP 2xx on its own never counts as success.
"""

from __future__ import annotations

import json

from pydantic import BaseModel

SENTINEL = "done"


class SaveResult(BaseModel):
    success: bool
    message: str = ""
    status_code: int | None = None
    structured: bool = False


def is_done(status_code: int, text: str | None) -> bool:
    """Legacy rule: 2xx and a body of ``done`` (trimmed, any case)."""
    return 200 <= status_code < 300 and (text or "").strip().lower() == SENTINEL


def _structured(text: str) -> dict | None:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("status"), str):
        return data
    return None


def interpret_save_response(status_code: int, text: str | None) -> SaveResult:
    body = (text or "").strip()

    if not 200 <= status_code < 300:
        return SaveResult(
            success=False,
            message=body or f"Webhook responded with {status_code}",
            status_code=status_code,
        )

    data = _structured(body) if body else None
    if data is not None:
        status = data["status"].strip().lower()
        message = data.get("message")
        return SaveResult(
            success=status == "ok",
            message=str(message) if message is not None else ("" if status == "ok" else f"Webhook reported {status!r}"),
            status_code=status_code,
            structured=True,
        )

    if is_done(status_code, body):
        return SaveResult(success=True, status_code=status_code)

    return SaveResult(
        success=False,
        message=body or "Webhook did not return done",
        status_code=status_code,
    )
