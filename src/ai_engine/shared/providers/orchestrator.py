"""Fallback orchestrator — the main entry-point for provider calls.

Walks the registry in priority order, runs each enabled adapter under the
timeout guard and returns the first success.  Attempts are strictly
sequential and all per-call state lives on the stack, so one orchestrator
instance serves any number of concurrent callers.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Iterable

import structlog

from ai_engine.domain.enums import AttemptOutcome
from ai_engine.domain.exceptions import AllProvidersExhaustedError, ProviderFailure
from ai_engine.domain.value_objects import AIResponse, ChatRequest, FailureRecord
from ai_engine.shared.providers.registry import ProviderRegistry
from ai_engine.shared.providers.timeout import with_timeout
from ai_engine.shared.providers.types import AttemptEvent, ProviderDescriptor

logger = structlog.get_logger(__name__)

AttemptObserver = Callable[[AttemptEvent], None]


class FallbackOrchestrator:
    """Try providers in registry order until one succeeds.

    Usage::

        orchestrator = FallbackOrchestrator(registry, observers=[record_attempt])
        response = await orchestrator.execute(chat_request)

    Per-provider failures are recorded and never raised directly; only
    :class:`AllProvidersExhaustedError` reaches the caller.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        observers: Iterable[AttemptObserver] = (),
    ) -> None:
        self._registry = registry
        self._observers = list(observers)

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def add_observer(self, observer: AttemptObserver) -> None:
        self._observers.append(observer)

    # ── Main entry-point ─────────────────────────────────────
    async def execute(self, request: ChatRequest) -> AIResponse:
        """Run the fallback chain for one request.

        Returns:
            The response of the first provider that succeeded.

        Raises:
            AllProvidersExhaustedError: every enabled provider failed, or
                none is enabled.
        """
        if not self._registry.enabled_providers():
            logger.error("no_providers_configured", registered=len(self._registry))
            raise AllProvidersExhaustedError()

        failures: list[FailureRecord] = []

        for descriptor in self._registry.list_providers():
            if not descriptor.enabled:
                logger.debug("provider_skipped", provider=descriptor.identifier)
                continue

            response = await self._attempt(descriptor, request, failures)
            if response is not None:
                if failures:
                    logger.info(
                        "provider_failover_success",
                        provider=descriptor.identifier,
                        attempts=len(failures) + 1,
                        failed_providers=[f.provider_name for f in failures],
                    )
                return response

        logger.error(
            "all_providers_exhausted",
            failures=[str(f) for f in failures],
        )
        raise AllProvidersExhaustedError(failures)

    # ── Single attempt ───────────────────────────────────────
    async def _attempt(
        self,
        descriptor: ProviderDescriptor,
        request: ChatRequest,
        failures: list[FailureRecord],
    ) -> AIResponse | None:
        pid = descriptor.identifier
        name = descriptor.display_name
        adapter = self._registry.get_adapter(pid)
        log = logger.bind(provider=pid, timeout_ms=descriptor.timeout_ms)
        log.debug("provider_attempt")

        start = time.monotonic()
        try:
            response = await with_timeout(
                adapter.complete(request), descriptor.timeout_ms, name
            )
        except asyncio.CancelledError:
            log.info("provider_attempt_cancelled")
            raise
        except ProviderFailure as exc:
            latency_ms = (time.monotonic() - start) * 1000
            if exc.outcome == AttemptOutcome.TIMEOUT:
                log.warning("provider_timeout")
            else:
                log.warning(
                    "provider_request_failed",
                    error=exc.message,
                    outcome=exc.outcome.value,
                    latency_ms=round(latency_ms, 1),
                )
            self._fail(descriptor, exc.message, exc.outcome, latency_ms, failures)
            return None
        except Exception as exc:
            latency_ms = (time.monotonic() - start) * 1000
            message = f"{type(exc).__name__}: {exc}"
            log.exception("provider_unexpected_error", error=message)
            self._fail(
                descriptor, message, AttemptOutcome.UNEXPECTED_ERROR, latency_ms, failures
            )
            return None

        latency_ms = (time.monotonic() - start) * 1000
        log.info(
            "provider_request_success",
            model=response.model,
            tokens_used=response.tokens_used,
            latency_ms=round(latency_ms, 1),
        )
        self._emit(AttemptEvent(pid, name, AttemptOutcome.SUCCESS, latency_ms))
        return response

    def _fail(
        self,
        descriptor: ProviderDescriptor,
        message: str,
        outcome: AttemptOutcome,
        latency_ms: float,
        failures: list[FailureRecord],
    ) -> None:
        failures.append(FailureRecord(descriptor.display_name, message, outcome))
        self._emit(
            AttemptEvent(
                descriptor.identifier,
                descriptor.display_name,
                outcome,
                latency_ms,
                error=message,
            )
        )

    # ── Observability hook ───────────────────────────────────
    def _emit(self, event: AttemptEvent) -> None:
        for observer in self._observers:
            try:
                observer(event)
            except Exception:
                logger.exception(
                    "attempt_observer_failed",
                    observer=getattr(observer, "__name__", type(observer).__name__),
                    provider=event.provider_id,
                )
