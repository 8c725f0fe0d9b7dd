"""Workflow webhook bridge: adapters, reply envelopes and save sentinels."""

from dealerdesk.bridge.base import BaseWebhookAdapter, WebhookAdapter
from dealerdesk.bridge.envelope import resolve_envelope, unwrap_payload
from dealerdesk.bridge.models import WebhookOperation, WebhookRequest, WebhookResponse
from dealerdesk.bridge.registry import AdapterRegistry
from dealerdesk.bridge.sentinel import interpret_save_response, is_done

__all__ = [
    "AdapterRegistry",
    "BaseWebhookAdapter",
    "WebhookAdapter",
    "WebhookOperation",
    "WebhookRequest",
    "WebhookResponse",
    "interpret_save_response",
    "is_done",
    "resolve_envelope",
    "unwrap_payload",
]
