"""Response-envelope contract for workflow webhook replies.

Webhooks wrap their payload in one of a few known shapes: a JSON array,
``{"json": ...}``, ``{"data": ...}`` or ``{"body": ...}`` where ``body`` may
be JSON text. ``resolve_envelope`` peels those layers one at a time and
records each step; anything outside the contract raises
``MalformedResponseError``. ``unwrap_payload`` is the lenient form that
returns ``None`` instead.
"""

from __future__ import annotations

import json
import logging
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from dealerdesk.core.errors import MalformedResponseError

logger = logging.getLogger(__name__)

MAX_DEPTH = 32


class EnvelopeKind(StrEnum):
    ARRAY = "array"
    JSON = "json"
    DATA = "data"
    BODY = "body"
    BODY_TEXT = "body_text"
    PLAIN = "plain"


class ResolvedPayload(BaseModel):
    """A payload object plus the wrapper layers removed to reach it."""

    payload: Any
    layers: list[EnvelopeKind] = Field(default_factory=list)

    @property
    def kind(self) -> EnvelopeKind:
        return self.layers[0] if self.layers else EnvelopeKind.PLAIN


def _present(value: Any) -> bool:
    """Whether a wrapper field counts as set; empty objects and arrays do."""
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, (str, int, float)):
        return bool(value) and value == value
    return True


def _step(value: Any) -> tuple[EnvelopeKind, Any]:
    """Classify one layer and return the next value to inspect."""
    if isinstance(value, list):
        if not value:
            raise MalformedResponseError("Webhook returned an empty array")
        return EnvelopeKind.ARRAY, value[0]

    if not isinstance(value, dict):
        raise MalformedResponseError(
            f"Webhook returned {type(value).__name__}, expected an object"
        )

    if isinstance(value.get("json"), dict):
        return EnvelopeKind.JSON, value["json"]
    if _present(value.get("data")):
        return EnvelopeKind.DATA, value["data"]
    body = value.get("body")
    if _present(body):
        if isinstance(body, str):
            try:
                return EnvelopeKind.BODY_TEXT, json.loads(body)
            except ValueError as exc:
                raise MalformedResponseError(f"Webhook body is not valid JSON: {exc}") from exc
        return EnvelopeKind.BODY, body

    return EnvelopeKind.PLAIN, value


def resolve_envelope(raw: Any) -> ResolvedPayload:
    """Strictly unwrap a webhook response down to its payload object."""
    if raw is None:
        raise MalformedResponseError("Webhook returned no content")

    layers: list[EnvelopeKind] = []
    value = raw
    for _ in range(MAX_DEPTH):
        kind, inner = _step(value)
        if kind == EnvelopeKind.PLAIN:
            return ResolvedPayload(payload=value, layers=layers)
        layers.append(kind)
        value = inner

    raise MalformedResponseError(f"Webhook response nested deeper than {MAX_DEPTH} layers")


def unwrap_payload(raw: Any) -> dict[str, Any] | None:
    """Best-effort unwrap; malformed responses become ``None`` ("no data")."""
    try:
        return resolve_envelope(raw).payload
    except MalformedResponseError as exc:
        logger.info("Discarding webhook response: %s", exc)
        return None


def parse_response_text(text: str) -> Any:
    """Decode a webhook body: JSON when it parses, else the raw text, ``None`` when empty."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text
