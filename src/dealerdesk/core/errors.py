"""Exception hierarchy for dealerdesk.

Every failure is scoped to the single request that triggered it; routers
translate these into HTTP errors with a free-text detail.
"""

from __future__ import annotations

from typing import Any


class DealDeskError(Exception):
    """Base class for all dealerdesk errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class WebhookError(DealDeskError):
    """A webhook call failed: transport error, non-2xx status or unusable body."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str = "",
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(
            message,
            details={"endpoint": endpoint, "status_code": status_code},
        )
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body


class MalformedResponseError(DealDeskError):
    """A webhook response does not match the response-envelope contract."""


class VersionConflictError(DealDeskError):
    """The stored record changed since the caller last read it."""

    def __init__(self, table: str, deal_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"{table} for deal {deal_id!r} is at version {actual}, expected {expected}",
            details={"table": table, "deal_id": deal_id, "expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class UnknownTableError(DealDeskError, ValueError):
    """A deal sub-record table outside the allow-list."""


class RecordNotFoundError(DealDeskError, KeyError):
    """No row matched the requested deal id."""

    def __str__(self) -> str:
        return self.message


class DuplicateVinError(DealDeskError, ValueError):
    """A vehicle with this VIN is already in inventory."""

    def __init__(self, vin: str) -> None:
        super().__init__("Vehicle with this VIN already exists", details={"vin": vin})
        self.vin = vin
