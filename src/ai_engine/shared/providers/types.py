"""Core types for the provider fallback chain."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ai_engine.domain.enums import AttemptOutcome


class ProviderStatus(str, enum.Enum):
    """Observed health of an API provider."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    """Static description of a single provider slot in the chain.

    Attributes:
        identifier:   Unique identifier (e.g. "openai", "gemini").
        display_name: Human-readable name used in logs and failure reports.
        enabled:      Whether a usable credential was found at build time.
        timeout_ms:   Per-attempt wall-clock budget in milliseconds.
    """

    identifier: str
    display_name: str
    enabled: bool
    timeout_ms: int = 30_000

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")


@dataclass(frozen=True, slots=True)
class AttemptEvent:
    """One provider attempt, emitted to orchestrator observers."""

    provider_id: str
    provider_name: str
    outcome: AttemptOutcome
    latency_ms: float
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == AttemptOutcome.SUCCESS


@dataclass
class ProviderHealth:
    """Read-only snapshot of a provider's observed health."""

    provider_id: str
    display_name: str = ""
    status: ProviderStatus = ProviderStatus.HEALTHY
    total_requests: int = 0
    total_successes: int = 0
    total_failures: int = 0
    total_timeouts: int = 0
    consecutive_failures: int = 0
    success_rate: float = 1.0
    latency_p50_ms: float = 0.0
    latency_p95_ms: float = 0.0
    last_error: str | None = None
    last_error_time: float | None = None
