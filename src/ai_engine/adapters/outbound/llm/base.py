"""Shared HTTP plumbing for provider adapters.

Each adapter makes exactly one request per ``complete`` and never retries;
failover belongs to the orchestrator.  The per-provider deadline is the
orchestrator's timeout guard, so the shared client is built with
``timeout=None``; a client with its own shorter timeout would fail slow
providers as transport errors before their budget runs out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from ai_engine.domain.enums import AttemptOutcome
from ai_engine.domain.exceptions import NotConfiguredError, ProviderError, ValidationError
from ai_engine.domain.value_objects import ChatRequest, MAX_TEMPERATURE, MIN_TEMPERATURE
from ai_engine.ports.outbound import ProviderAdapter

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CompletionDefaults:
    """Values used when a request leaves ``max_tokens``/``temperature`` unset."""

    max_tokens: int = 2000
    temperature: float = 0.7

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ValidationError("default max_tokens must be positive")
        if not MIN_TEMPERATURE <= self.temperature <= MAX_TEMPERATURE:
            raise ValidationError("default temperature out of range")

    def max_tokens_for(self, request: ChatRequest) -> int:
        return request.max_tokens if request.max_tokens is not None else self.max_tokens

    def temperature_for(self, request: ChatRequest) -> float:
        return request.temperature if request.temperature is not None else self.temperature


class HttpProviderAdapter(ProviderAdapter):
    """Base for adapters that speak HTTP + JSON to their provider."""

    identifier: str
    display_name: str

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        *,
        model: str,
        base_url: str,
        defaults: CompletionDefaults | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise NotConfiguredError(self.display_name)
        self._client = client
        self._api_key = api_key.strip()
        self.model = model
        self._base_url = base_url.rstrip("/")
        self._defaults = defaults or CompletionDefaults()

    @property
    def defaults(self) -> CompletionDefaults:
        return self._defaults

    # ── HTTP ─────────────────────────────────────────────────
    async def _post_json(
        self, url: str, *, headers: dict[str, str], body: dict[str, Any]
    ) -> dict[str, Any]:
        """POST ``body`` and return the decoded JSON object.

        Raises:
            ProviderError: transport failure, non-2xx status, or a body that
                is not a JSON object.
        """
        try:
            response = await self._client.post(url, headers=headers, json=body)
        except httpx.TransportError as exc:
            reason = f"{type(exc).__name__}: {_transport_detail(exc)}"
            raise ProviderError(
                self.display_name,
                f"{self.display_name} request failed: {reason}",
                outcome=AttemptOutcome.TRANSPORT_ERROR,
            ) from exc

        if response.is_error:
            detail = _provider_error_text(response)
            raise ProviderError(
                self.display_name,
                f"{self.display_name} API error (HTTP {response.status_code}): {detail}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(
                self.display_name,
                f"{self.display_name} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise ProviderError(
                self.display_name,
                f"{self.display_name} returned unexpected payload type {type(data).__name__}",
                status_code=response.status_code,
            )
        return data


def _transport_detail(exc: httpx.TransportError) -> str:
    """Text for a transport error; httpx often raises these with no message."""
    text = str(exc).strip()
    if text:
        return text
    doc = (type(exc).__doc__ or "").strip()
    return doc.splitlines()[0] if doc else repr(exc)


def _provider_error_text(response: httpx.Response) -> str:
    """Best human-readable error text from an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip()[:500] or response.reason_phrase
    text = error_message_from(data)
    return text or response.reason_phrase


def error_message_from(data: Any) -> str | None:
    """Extract ``error.message`` (or a bare ``error`` string) from a body."""
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        message = err.get("message")
        return str(message) if message else None
    if isinstance(err, str) and err:
        return err
    return None


def usage_tokens(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None
