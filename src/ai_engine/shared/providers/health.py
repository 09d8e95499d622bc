"""Sliding-window health tracking fed by orchestrator attempt events.

Purely observational: nothing here feeds back into provider order.
"""

from __future__ import annotations

import bisect
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Iterable

from ai_engine.domain.enums import AttemptOutcome
from ai_engine.shared.providers.types import (
    AttemptEvent,
    ProviderDescriptor,
    ProviderHealth,
    ProviderStatus,
)


@dataclass
class _Sample:
    timestamp: float
    success: bool
    latency_ms: float


class ProviderHealthTracker:
    """Thread-safe, sliding-window health tracker for one provider."""

    def __init__(
        self,
        provider_id: str,
        display_name: str = "",
        *,
        window_seconds: float = 300.0,
        degraded_threshold: float = 0.30,
        unhealthy_threshold: float = 0.60,
    ) -> None:
        self._provider_id = provider_id
        self._display_name = display_name or provider_id
        self._window = window_seconds
        self._degraded_thr = degraded_threshold
        self._unhealthy_thr = unhealthy_threshold

        self._samples: deque[_Sample] = deque()
        self._latencies: list[float] = []  # sorted, for percentiles
        self._lock = threading.Lock()

        # Cumulative counters
        self._total_requests = 0
        self._total_successes = 0
        self._total_failures = 0
        self._total_timeouts = 0
        self._consecutive_failures = 0
        self._last_error: str | None = None
        self._last_error_time: float | None = None

    # ── Recording ────────────────────────────────────────────
    def record(self, event: AttemptEvent) -> None:
        with self._lock:
            now = time.monotonic()
            self._samples.append(_Sample(now, event.succeeded, event.latency_ms))
            bisect.insort(self._latencies, event.latency_ms)
            self._total_requests += 1
            if event.succeeded:
                self._total_successes += 1
                self._consecutive_failures = 0
            else:
                self._total_failures += 1
                self._consecutive_failures += 1
                self._last_error = event.error
                self._last_error_time = now
                if event.outcome == AttemptOutcome.TIMEOUT:
                    self._total_timeouts += 1
            self._evict()

    # ── Status derivation ────────────────────────────────────
    @property
    def status(self) -> ProviderStatus:
        with self._lock:
            return self._status_locked()

    @property
    def health(self) -> ProviderHealth:
        """Produce a read-only health snapshot."""
        with self._lock:
            self._evict()
            window_total = len(self._samples)
            window_failures = sum(1 for s in self._samples if not s.success)
            success_rate = (
                (window_total - window_failures) / window_total if window_total else 1.0
            )
            return ProviderHealth(
                provider_id=self._provider_id,
                display_name=self._display_name,
                status=self._status_locked(),
                total_requests=self._total_requests,
                total_successes=self._total_successes,
                total_failures=self._total_failures,
                total_timeouts=self._total_timeouts,
                consecutive_failures=self._consecutive_failures,
                success_rate=round(success_rate, 4),
                latency_p50_ms=self._percentile(0.50),
                latency_p95_ms=self._percentile(0.95),
                last_error=self._last_error,
                last_error_time=self._last_error_time,
            )

    # ── Internals (caller holds lock) ────────────────────────
    def _status_locked(self) -> ProviderStatus:
        self._evict()
        if not self._samples:
            return ProviderStatus.HEALTHY
        rate = sum(1 for s in self._samples if not s.success) / len(self._samples)
        if rate >= self._unhealthy_thr:
            return ProviderStatus.UNHEALTHY
        if rate >= self._degraded_thr:
            return ProviderStatus.DEGRADED
        return ProviderStatus.HEALTHY

    def _evict(self) -> None:
        cutoff = time.monotonic() - self._window
        while self._samples and self._samples[0].timestamp < cutoff:
            old = self._samples.popleft()
            idx = bisect.bisect_left(self._latencies, old.latency_ms)
            if idx < len(self._latencies) and self._latencies[idx] == old.latency_ms:
                del self._latencies[idx]

    def _percentile(self, p: float) -> float:
        if not self._latencies:
            return 0.0
        idx = min(int(len(self._latencies) * p), len(self._latencies) - 1)
        return round(self._latencies[idx], 2)


class ProviderHealthMonitor:
    """Attempt observer that keeps one tracker per provider in the chain."""

    def __init__(self, descriptors: Iterable[ProviderDescriptor], **tracker_kwargs: float) -> None:
        self._descriptors = list(descriptors)
        self._trackers = {
            d.identifier: ProviderHealthTracker(d.identifier, d.display_name, **tracker_kwargs)
            for d in self._descriptors
            if d.enabled
        }

    def __call__(self, event: AttemptEvent) -> None:
        tracker = self._trackers.get(event.provider_id)
        if tracker is not None:
            tracker.record(event)

    def snapshot(self) -> list[ProviderHealth]:
        """Health for every provider, in chain order; disabled ones included."""
        results: list[ProviderHealth] = []
        for d in self._descriptors:
            tracker = self._trackers.get(d.identifier)
            if tracker is None:
                results.append(
                    ProviderHealth(
                        provider_id=d.identifier,
                        display_name=d.display_name,
                        status=ProviderStatus.DISABLED,
                    )
                )
            else:
                results.append(tracker.health)
        return results
