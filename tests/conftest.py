"""Shared test fixtures and helpers."""

from __future__ import annotations

import json

import pytest

from dealerdesk.bridge.base import BaseWebhookAdapter
from dealerdesk.bridge.models import AdapterConfig, WebhookOperation, WebhookRequest
from dealerdesk.bridge.registry import AdapterRegistry


class ScriptedWebhookAdapter(BaseWebhookAdapter):
    """Adapter that answers from a reply table instead of the network.

    ``replies`` maps an operation to ``(status_code, body_text)`` or to an
    exception to raise. Unlisted operations answer ``200 done``.
    """

    def __init__(self, replies=None, name: str = "workflow", **config) -> None:
        super().__init__(AdapterConfig(
            name=name,
            endpoints={op.value: f"/{op.value}" for op in WebhookOperation},
            **config,
        ))
        self.replies = dict(replies or {})
        self.sent: list[WebhookRequest] = []

    def _get_operations(self) -> list[str]:
        return list(self._config.endpoints)

    async def _do_send(self, request: WebhookRequest) -> tuple[int, str]:
        self.sent.append(request)
        reply = self.replies.get(request.operation, (200, "done"))
        if isinstance(reply, Exception):
            raise reply
        status, body = reply
        if not isinstance(body, str):
            body = json.dumps(body)
        return status, body


def make_registry(adapter: BaseWebhookAdapter) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.register(adapter)
    return registry


@pytest.fixture
def scripted_adapter():
    return ScriptedWebhookAdapter()
