from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Iterable, Optional, Sequence, Union

import httpx

from chat_relay.core.errors import TransportError, UpstreamError, UpstreamTimeoutError
from chat_relay.core.metrics import metrics
from chat_relay.core.session_store import Message
from chat_relay.core.settings import Settings

logger = logging.getLogger(__name__)

OutboundMessage = Union[Message, dict]


def _extract_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        choice = choices[0]
        if isinstance(choice, dict):
            message = choice.get("message")
            if isinstance(message, dict):
                content = message.get("content")
                if content is not None:
                    return str(content)
            text = choice.get("text")
            if text is not None:
                return str(text)
    return ""


def _as_payload(messages: Iterable[OutboundMessage]) -> list[dict[str, str]]:
    payload: list[dict[str, str]] = []
    for message in messages:
        if isinstance(message, Message):
            payload.append(message.as_dict())
        elif isinstance(message, dict) and message.get("role") and message.get("content") is not None:
            payload.append({"role": str(message["role"]), "content": str(message["content"])})
    return payload


class UpstreamGateway:
    """Single-attempt client for an OpenAI-compatible chat completions endpoint.

    Every call runs under a hard deadline. When it fires the in-flight request
    is cancelled and ``UpstreamTimeoutError`` is raised; nothing is retried.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        default_model: str,
        allowed_models: Sequence[str] = (),
        timeout_ms: int = 20000,
        empty_reply_text: str = "No hay respuesta",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.default_model = default_model
        self.allowed_models = tuple(allowed_models) or (default_model,)
        self.timeout_ms = max(1, timeout_ms)
        self.empty_reply_text = empty_reply_text
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "UpstreamGateway":
        return cls(
            url=settings.upstream_url,
            api_key=settings.upstream_api_key,
            default_model=settings.default_model,
            allowed_models=settings.allowed_models,
            timeout_ms=settings.upstream_timeout_ms,
            empty_reply_text=settings.empty_reply_text,
            temperature=settings.upstream_temperature,
            max_tokens=settings.upstream_max_tokens,
            client=client,
        )

    def resolve_model(self, model: Optional[str]) -> str:
        if isinstance(model, str) and model in self.allowed_models:
            return model
        if model:
            logger.info("model not allowed requested=%s substituted=%s", model, self.default_model)
        return self.default_model

    def _headers(self) -> dict[str, str]:
        headers = {"content-type": "application/json"}
        if self.api_key:
            headers["authorization"] = f"Bearer {self.api_key}"
        return headers

    def _body(self, model: str, messages: Iterable[OutboundMessage]) -> dict[str, Any]:
        body: dict[str, Any] = {"model": model, "messages": _as_payload(messages)}
        if self.temperature is not None:
            body["temperature"] = self.temperature
        if self.max_tokens:
            body["max_tokens"] = self.max_tokens
        return body

    async def _post(self, body: dict[str, Any], timeout: float) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.url, json=body, headers=self._headers(), timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(self.url, json=body, headers=self._headers())

    async def complete(
        self,
        model: Optional[str],
        messages: Sequence[OutboundMessage],
        deadline: Optional[float] = None,
    ) -> str:
        resolved = self.resolve_model(model)
        timeout = deadline if deadline is not None else self.timeout_ms / 1000.0
        body = self._body(resolved, messages)
        started = time.monotonic()
        metrics.inc("chat_upstream_calls_total")
        try:
            response = await asyncio.wait_for(self._post(body, timeout), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            metrics.inc("chat_upstream_errors_total", {"kind": "timeout"})
            logger.warning("upstream timeout model=%s deadline_sec=%s", resolved, timeout)
            raise UpstreamTimeoutError("Tiempo de espera agotado") from exc
        except httpx.HTTPError as exc:
            metrics.inc("chat_upstream_errors_total", {"kind": "transport"})
            logger.warning("upstream transport failure model=%s error=%s", resolved, exc)
            raise TransportError("Error interno del servidor") from exc

        took_ms = int((time.monotonic() - started) * 1000)
        if not response.is_success:
            metrics.inc("chat_upstream_errors_total", {"kind": "status"})
            logger.warning("upstream error model=%s status=%s took_ms=%s", resolved, response.status_code, took_ms)
            raise UpstreamError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            metrics.inc("chat_upstream_errors_total", {"kind": "transport"})
            logger.warning("upstream returned non-JSON body model=%s status=%s", resolved, response.status_code)
            raise TransportError("Error interno del servidor") from exc

        content = _extract_content(data)
        if not content.strip():
            logger.info("upstream returned empty completion model=%s took_ms=%s", resolved, took_ms)
            return self.empty_reply_text
        logger.info("upstream ok model=%s took_ms=%s chars=%s", resolved, took_ms, len(content))
        return content
