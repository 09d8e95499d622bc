"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from ai_engine.config import Settings
from ai_engine.domain.value_objects import AIResponse, ChatRequest, Message
from ai_engine.ports.outbound import ProviderAdapter
from ai_engine.shared.providers.registry import ProviderRegistry
from ai_engine.shared.providers.types import ProviderDescriptor


class FakeAdapter(ProviderAdapter):
    """In-memory adapter that records every invocation in a shared log."""

    def __init__(
        self,
        identifier: str,
        *,
        call_log: list[str],
        display_name: str | None = None,
        content: str | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
        hang: bool = False,
    ) -> None:
        self.identifier = identifier
        self.display_name = display_name or identifier.upper()
        self.model = f"{identifier}-1"
        self.calls = 0
        self.requests: list[ChatRequest] = []
        self.cancelled = False
        self._call_log = call_log
        self._content = content if content is not None else f"ok:{identifier}"
        self._error = error
        self._delay = delay
        self._hang = hang

    async def complete(self, request: ChatRequest) -> AIResponse:
        self.calls += 1
        self.requests.append(request)
        self._call_log.append(self.identifier)
        try:
            if self._hang:
                await asyncio.Event().wait()
            if self._delay:
                await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error is not None:
            raise self._error
        return AIResponse(content=self._content, provider=self.display_name, model=self.model)


@pytest.fixture
def call_log() -> list[str]:
    return []


@pytest.fixture
def make_adapter(call_log: list[str]) -> Callable[..., FakeAdapter]:
    def _make(identifier: str, **kwargs: Any) -> FakeAdapter:
        return FakeAdapter(identifier, call_log=call_log, **kwargs)

    return _make


@pytest.fixture
def make_registry() -> Callable[..., ProviderRegistry]:
    """Build a registry from ``(adapter, enabled, timeout_ms)`` triples."""

    def _make(*slots: tuple[FakeAdapter, bool, int]) -> ProviderRegistry:
        return ProviderRegistry(
            (
                ProviderDescriptor(
                    identifier=adapter.identifier,
                    display_name=adapter.display_name,
                    enabled=enabled,
                    timeout_ms=timeout_ms,
                ),
                adapter if enabled else None,
            )
            for adapter, enabled, timeout_ms in slots
        )

    return _make


@pytest.fixture
def chat_request() -> ChatRequest:
    return ChatRequest(messages=(Message.user("Describe a landing page template"),))


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Settings isolated from the developer's environment and .env file."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "openai_api_key": "",
            "gemini_api_key": "",
            "google_ai_api_key": "",
            "perplexity_api_key": "",
            "ai_provider_priority": "openai,gemini,perplexity",
            "prometheus_enabled": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
