"""Bridge adapter data models."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class WebhookOperation(str, Enum):
    """Operations forwarded to workflow webhooks."""

    SAVE_COSTS = "save_costs"
    SAVE_PURCHASE = "save_purchase"
    SAVE_WORKSHEET = "save_worksheet"
    SAVE_DELIVERY = "save_delivery"
    ADD_INVENTORY = "add_inventory"
    DECODE_VIN = "decode_vin"
    SCAN_LICENSE = "scan_license"
    UPLOAD_IMAGE = "upload_image"
    DELETE_MEDIA = "delete_media"
    SEND_EMAIL = "send_email"
    SUBMIT_CREDIT_APP = "submit_credit_app"


# Replies to these operations carry decoded data instead of a save result
DATA_OPERATIONS = frozenset({
    WebhookOperation.DECODE_VIN,
    WebhookOperation.SCAN_LICENSE,
    WebhookOperation.ADD_INVENTORY,
})


class ConnectionStatus(str, Enum):
    """Adapter connection health status."""

    CONNECTED = "connected"
    DEGRADED = "degraded"
    DISCONNECTED = "disconnected"


class AdapterConfig(BaseModel):
    """Configuration for a webhook adapter."""

    name: str
    enabled: bool = True
    base_url: str = ""
    endpoints: dict[str, str] = Field(default_factory=dict)
    timeout_seconds: int = 30
    max_retries: int = 0
    description: str = ""


class WebhookRequest(BaseModel):
    """Normalized request sent to a webhook adapter.

    ``resource`` names the record being edited (e.g. ``worksheet:42``); a newer
    request for the same resource makes older replies stale.
    """

    operation: WebhookOperation
    payload: dict[str, Any] = Field(default_factory=dict)
    files: dict[str, tuple[str, bytes, str]] | None = None
    resource: str = ""
    request_id: str = Field(default_factory=lambda: uuid.uuid4().hex)


class WebhookResponse(BaseModel):
    """Normalized response from a webhook adapter."""

    success: bool
    data: Any = None
    error: str | None = None
    status_code: int | None = None
    raw: str = ""
    stale: bool = False
    adapter_name: str = ""
    request_id: str = ""


class AdapterSchema(BaseModel):
    """Schema describing an adapter's capabilities."""

    name: str
    description: str = ""
    operations: list[str] = Field(default_factory=list)
    status: ConnectionStatus = ConnectionStatus.CONNECTED
