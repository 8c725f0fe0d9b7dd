"""Vehicle image list helpers."""

from __future__ import annotations

import json
from typing import Any


def normalize_images(value: Any) -> list[str]:
    """Accept a list or a JSON-array string of URLs; anything else is empty."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def set_main_image(images: list[str], url: str) -> list[str]:
    """Move ``url`` to the front; unknown URLs leave the list unchanged."""
    if url not in images:
        return list(images)
    return [url] + [image for image in images if image != url]


def remove_image(images: list[str], url: str) -> list[str]:
    return [image for image in images if image != url]
