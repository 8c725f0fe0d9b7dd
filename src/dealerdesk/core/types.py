"""Core type definitions shared across dealerdesk modules."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any


class DealType(StrEnum):
    """How the customer pays for the vehicle."""

    CASH = "Cash"
    FINANCE = "Finance"


_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


def to_money(value: Any) -> float:
    """Coerce a form value to a float.

    Currency symbols, thousands separators and whitespace are stripped, then
    the leading number is read (``"12.5.3"`` is 12.5, ``"5-"`` is 5).
    Empty, missing or unparsable input becomes ``0.0``; form totals must
    always render.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if number == number and abs(number) != float("inf") else 0.0
    cleaned = _NON_NUMERIC.sub("", str(value).strip())
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return 0.0
    return float(match.group())
