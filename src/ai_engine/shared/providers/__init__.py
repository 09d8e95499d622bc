"""Multi-provider fallback framework.

Provides the ordered provider registry, the per-attempt timeout guard, the
fallback orchestrator and observational health tracking.
"""

from ai_engine.shared.providers.types import (
    AttemptEvent,
    ProviderDescriptor,
    ProviderHealth,
    ProviderStatus,
)
from ai_engine.shared.providers.health import ProviderHealthMonitor, ProviderHealthTracker
from ai_engine.shared.providers.registry import ProviderRegistry
from ai_engine.shared.providers.timeout import with_timeout
from ai_engine.shared.providers.orchestrator import FallbackOrchestrator

__all__ = [
    "AttemptEvent",
    "FallbackOrchestrator",
    "ProviderDescriptor",
    "ProviderHealth",
    "ProviderHealthMonitor",
    "ProviderHealthTracker",
    "ProviderRegistry",
    "ProviderStatus",
    "with_timeout",
]
