"""Outgoing payload hygiene for webhook posts."""

from __future__ import annotations

from typing import Any


def clean_payload(data: dict[str, Any]) -> dict[str, Any]:
    """Trim string values and turn blank strings into ``None``."""
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value
    return cleaned
