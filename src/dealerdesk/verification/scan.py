"""Normalization of driver's-license scan results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from dealerdesk.bridge.envelope import resolve_envelope
from dealerdesk.core.errors import MalformedResponseError


class LicenseScan(BaseModel):
    full_name: str = ""
    address: str = ""
    license_number: str = ""


def _pick(record: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = record.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (str, int, float)):
            text = str(value).strip()
            if text:
                return text
    return ""


def normalize_license_scan(raw: Any) -> LicenseScan:
    """Extract name, address and license number from an OCR reply.

    Raises ``MalformedResponseError`` when the reply breaks the envelope
    contract or every field comes back empty.
    """
    record = resolve_envelope(raw).payload
    scan = LicenseScan(
        full_name=_pick(record, "full_name", "fullName"),
        address=_pick(record, "address"),
        license_number=_pick(record, "license_number", "licenseNumber"),
    )
    if not (scan.full_name or scan.address or scan.license_number):
        raise MalformedResponseError("Scan completed but returned empty fields")
    return scan
