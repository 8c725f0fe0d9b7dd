"""HTTP adapter that posts deal data to workflow webhooks."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
import yaml

from dealerdesk.bridge.base import BaseWebhookAdapter
from dealerdesk.bridge.models import AdapterConfig, WebhookRequest
from dealerdesk.core.config import WebhookConfig
from dealerdesk.core.errors import WebhookError

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]


class HttpWebhookAdapter(BaseWebhookAdapter):
    """Posts JSON (or multipart when files are attached) to configured endpoints."""

    def __init__(self, config: AdapterConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__(config)
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    def _get_operations(self) -> list[str]:
        return list(self._config.endpoints)

    def endpoint_for(self, request: WebhookRequest) -> str:
        return self._config.endpoints[request.operation.value]

    async def _do_send(self, request: WebhookRequest) -> tuple[int, str]:
        path = self.endpoint_for(request)
        try:
            if request.files:
                # Multipart forms carry the structured fields as a JSON string
                resp = await self._http.post(
                    path,
                    data={"payload": json.dumps(request.payload, default=str)},
                    files=request.files,
                )
            else:
                resp = await self._http.post(path, json=_jsonable(request.payload))
        except httpx.RequestError as exc:
            raise WebhookError(str(exc) or type(exc).__name__, endpoint=path) from exc
        return resp.status_code, resp.text

    async def close(self) -> None:
        await self._http.aclose()


def _jsonable(payload: dict[str, Any]) -> Any:
    return json.loads(json.dumps(payload, default=str))


def load_adapter_configs(
    path: str | Path | None = None,
    webhook_config: WebhookConfig | None = None,
) -> list[AdapterConfig]:
    """Read adapter definitions from YAML, filling defaults from settings."""
    webhook_config = webhook_config or WebhookConfig()
    config_path = Path(path or webhook_config.config_path)
    if not config_path.is_absolute():
        config_path = _PROJECT_ROOT / config_path
    if not config_path.exists():
        logger.warning("Webhook config %s not found; no adapters loaded", config_path)
        return []

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    configs: list[AdapterConfig] = []
    for entry in raw.get("adapters", []):
        entry = dict(entry)
        entry.setdefault("base_url", webhook_config.base_url)
        entry.setdefault("timeout_seconds", webhook_config.timeout_seconds)
        entry.setdefault("max_retries", webhook_config.max_retries)
        configs.append(AdapterConfig(**entry))
    return configs
