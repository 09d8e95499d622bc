"""Composition root — wires settings, adapters, registry and engine.

Everything is built once at process start and handed down explicitly;
nothing here creates clients lazily on first use.
"""

from __future__ import annotations

from functools import lru_cache

import httpx
import structlog

from ai_engine.adapters.outbound.llm import build_registry
from ai_engine.application.services import AIEngine
from ai_engine.config import Settings, get_settings
from ai_engine.shared.observability import configure_logging
from ai_engine.shared.observability.metrics import record_attempt
from ai_engine.shared.providers.health import ProviderHealthMonitor
from ai_engine.shared.providers.orchestrator import AttemptObserver, FallbackOrchestrator

logger = structlog.get_logger(__name__)


# ── Settings ─────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_cached_settings() -> Settings:
    return get_settings()


# ── Engine ───────────────────────────────────────────────────
def create_ai_engine(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> AIEngine:
    """Build a fully wired engine.

    When ``http_client`` is omitted the engine creates one and closes it in
    :meth:`AIEngine.close`; a caller-supplied client stays caller-owned.
    The created client has no timeout of its own: each provider's
    ``*_TIMEOUT_MS`` budget is enforced by the orchestrator.
    """
    s = settings or get_cached_settings()
    owned_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=None)

    registry = build_registry(s, client)
    health = ProviderHealthMonitor(registry.list_providers())
    observers: list[AttemptObserver] = [health]
    if s.prometheus_enabled:
        observers.append(record_attempt)

    engine = AIEngine(
        FallbackOrchestrator(registry, observers=observers),
        health_monitor=health,
        structured_temperature=s.ai_structured_temperature,
        http_client=client if owned_client else None,
    )
    logger.info(
        "ai_engine_ready",
        env=s.app_env.value,
        providers=registry.status(),
    )
    return engine


def bootstrap(settings: Settings | None = None) -> AIEngine:
    """Process start-up: configure logging, then build the engine."""
    s = settings or get_cached_settings()
    configure_logging(log_level=s.log_level, json_logs=s.is_production)
    return create_ai_engine(s)
