"""Prometheus metrics for provider attempts."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

from ai_engine.shared.providers.types import AttemptEvent


# ── Provider metrics ─────────────────────────────────────────
PROVIDER_ATTEMPTS = Counter(
    "ai_provider_attempts_total",
    "Provider attempts made by the fallback chain",
    ["provider", "outcome"],
)

PROVIDER_LATENCY = Histogram(
    "ai_provider_latency_seconds",
    "Provider attempt latency, successful or not",
    ["provider"],
    buckets=(0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0),
)


def record_attempt(event: AttemptEvent) -> None:
    """Attempt observer that exports each attempt to Prometheus."""
    PROVIDER_ATTEMPTS.labels(provider=event.provider_id, outcome=event.outcome.value).inc()
    PROVIDER_LATENCY.labels(provider=event.provider_id).observe(event.latency_ms / 1000)
