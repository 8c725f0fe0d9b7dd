"""Base webhook adapter with Protocol definition and ABC implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from dealerdesk.bridge.envelope import parse_response_text, resolve_envelope
from dealerdesk.bridge.models import (
    DATA_OPERATIONS,
    AdapterConfig,
    AdapterSchema,
    ConnectionStatus,
    WebhookRequest,
    WebhookResponse,
)
from dealerdesk.bridge.sentinel import interpret_save_response
from dealerdesk.core.errors import MalformedResponseError, WebhookError

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Workflow service temporarily unavailable. Please try again."


@runtime_checkable
class WebhookAdapter(Protocol):
    """Protocol for webhook adapters."""

    @property
    def name(self) -> str: ...

    @property
    def schema(self) -> AdapterSchema: ...

    async def send(self, request: WebhookRequest) -> WebhookResponse: ...

    def health_check(self) -> ConnectionStatus: ...


class BaseWebhookAdapter(ABC):
    """Abstract base class for webhook adapters.

    Provides configurable retry (none by default), graceful degradation,
    interpretation of save and data replies, and stale-reply detection per
    edited resource.
    """

    def __init__(self, config: AdapterConfig) -> None:
        self._config = config
        self._status = ConnectionStatus.CONNECTED
        self._inflight: dict[str, str] = {}

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> AdapterConfig:
        return self._config

    @property
    def schema(self) -> AdapterSchema:
        return AdapterSchema(
            name=self._config.name,
            description=self._config.description,
            operations=self._get_operations(),
            status=self._status,
        )

    @abstractmethod
    def _get_operations(self) -> list[str]:
        """Return list of supported operation names."""

    @abstractmethod
    async def _do_send(self, request: WebhookRequest) -> tuple[int, str]:
        """Deliver the request; return the HTTP status and body text."""

    async def send(self, request: WebhookRequest) -> WebhookResponse:
        """Deliver a request and interpret the reply."""
        if not self._config.enabled:
            return WebhookResponse(
                success=False,
                error="Adapter is disabled",
                adapter_name=self.name,
                request_id=request.request_id,
            )
        if request.operation.value not in self._get_operations():
            return WebhookResponse(
                success=False,
                error=f"Unknown operation: {request.operation.value}",
                adapter_name=self.name,
                request_id=request.request_id,
            )

        if request.resource:
            self._inflight[request.resource] = request.request_id

        current = True
        try:
            response = await self._send_with_retry(request)
        finally:
            if request.resource:
                current = self._inflight.get(request.resource) == request.request_id
                if current:
                    del self._inflight[request.resource]
        response.adapter_name = self.name
        response.request_id = request.request_id
        response.stale = not current

        logger.info(
            "webhook %s %s success=%s status=%s stale=%s",
            self.name, request.operation.value, response.success,
            response.status_code, response.stale,
        )
        return response

    async def _send_with_retry(self, request: WebhookRequest) -> WebhookResponse:
        attempts = max(1, self._config.max_retries + 1)
        for attempt in range(attempts):
            try:
                status_code, text = await self._do_send(request)
            except WebhookError as exc:
                if attempt < attempts - 1:
                    logger.warning(
                        "Webhook %s failed (%s), retrying (%d/%d)",
                        request.operation.value, exc, attempt + 1, attempts,
                    )
                    continue
                logger.warning("Webhook %s failed: %s", request.operation.value, exc)
                self._status = ConnectionStatus.DEGRADED
                return WebhookResponse(success=False, error=UNAVAILABLE_MESSAGE)
            self._status = ConnectionStatus.CONNECTED
            return self.interpret(request, status_code, text)
        raise AssertionError("unreachable")  # pragma: no cover

    def interpret(self, request: WebhookRequest, status_code: int, text: str) -> WebhookResponse:
        """Turn a raw reply into a normalized response."""
        if request.operation in DATA_OPERATIONS:
            return self._interpret_data(status_code, text)

        result = interpret_save_response(status_code, text)
        return WebhookResponse(
            success=result.success,
            error=None if result.success else result.message,
            data={"message": result.message} if result.success and result.message else None,
            status_code=status_code,
            raw=text,
        )

    @staticmethod
    def _interpret_data(status_code: int, text: str) -> WebhookResponse:
        data = parse_response_text(text)
        if not 200 <= status_code < 300:
            error = None
            if isinstance(data, dict) and isinstance(data.get("error"), str):
                error = data["error"]
            return WebhookResponse(
                success=False,
                error=error or text or f"Webhook responded with {status_code}",
                status_code=status_code,
                raw=text,
            )
        try:
            resolved = resolve_envelope(data)
        except MalformedResponseError as exc:
            logger.warning("Malformed webhook response: %s", exc)
            return WebhookResponse(
                success=False,
                error=f"Unexpected response from workflow service: {exc}",
                status_code=status_code,
                raw=text,
            )
        return WebhookResponse(
            success=True,
            data=resolved.payload,
            status_code=status_code,
            raw=text,
        )

    def health_check(self) -> ConnectionStatus:
        return self._status

    def is_current(self, resource: str, request_id: str) -> bool:
        """True while ``request_id`` is the newest in-flight request for ``resource``."""
        return self._inflight.get(resource) == request_id
