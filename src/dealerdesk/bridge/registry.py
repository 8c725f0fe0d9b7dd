"""Adapter registry for webhook adapters."""

from __future__ import annotations

from dealerdesk.bridge.base import WebhookAdapter
from dealerdesk.bridge.models import AdapterSchema, ConnectionStatus


class AdapterRegistry:
    """Registry for webhook adapters. Provides register/get/list and health checking."""

    def __init__(self) -> None:
        self._adapters: dict[str, WebhookAdapter] = {}
        self._default: str | None = None

    def register(self, adapter: WebhookAdapter, *, default: bool = False) -> None:
        self._adapters[adapter.name] = adapter
        if default or self._default is None:
            self._default = adapter.name

    def get(self, name: str) -> WebhookAdapter | None:
        return self._adapters.get(name)

    @property
    def default(self) -> WebhookAdapter | None:
        """The adapter deal routes post to; the first registered unless overridden."""
        if self._default is None:
            return None
        return self._adapters.get(self._default)

    def list_adapters(self) -> list[AdapterSchema]:
        return [adapter.schema for adapter in self._adapters.values()]

    def health_check_all(self) -> dict[str, ConnectionStatus]:
        return {name: adapter.health_check() for name, adapter in self._adapters.items()}

    @property
    def adapter_names(self) -> list[str]:
        return list(self._adapters.keys())

    async def close(self) -> None:
        for adapter in self._adapters.values():
            close = getattr(adapter, "close", None)
            if close is not None:
                await close()
