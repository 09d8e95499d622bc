"""Provider registry — the fixed, ordered fallback chain.

Built once at process start and read-only afterwards, so it is shared
across concurrent calls without locking.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from ai_engine.domain.exceptions import NotConfiguredError
from ai_engine.ports.outbound import ProviderAdapter
from ai_engine.shared.providers.types import ProviderDescriptor

logger = structlog.get_logger(__name__)

RegistryEntry = tuple[ProviderDescriptor, ProviderAdapter | None]


class ProviderRegistry:
    """Ordered provider descriptors plus the adapter for each enabled one."""

    def __init__(self, entries: Iterable[RegistryEntry]) -> None:
        self._descriptors: list[ProviderDescriptor] = []
        self._adapters: dict[str, ProviderAdapter] = {}

        for descriptor, adapter in entries:
            pid = descriptor.identifier
            if any(d.identifier == pid for d in self._descriptors):
                raise ValueError(f"Duplicate provider identifier: {pid!r}")
            if descriptor.enabled and adapter is None:
                raise ValueError(f"Enabled provider {pid!r} has no adapter")
            self._descriptors.append(descriptor)
            if descriptor.enabled and adapter is not None:
                self._adapters[pid] = adapter

        logger.info(
            "provider_registry_built",
            order=[d.identifier for d in self._descriptors],
            enabled=[d.identifier for d in self._descriptors if d.enabled],
        )

    # ── Queries ──────────────────────────────────────────────
    def list_providers(self) -> list[ProviderDescriptor]:
        return list(self._descriptors)

    def enabled_providers(self) -> list[ProviderDescriptor]:
        return [d for d in self._descriptors if d.enabled]

    def is_enabled(self, identifier: str) -> bool:
        return identifier in self._adapters

    def get_adapter(self, identifier: str) -> ProviderAdapter:
        adapter = self._adapters.get(identifier)
        if adapter is None:
            raise NotConfiguredError(identifier)
        return adapter

    def status(self) -> dict[str, dict[str, object]]:
        return {
            d.identifier: {"enabled": d.enabled, "display_name": d.display_name}
            for d in self._descriptors
        }

    def __len__(self) -> int:
        return len(self._descriptors)
