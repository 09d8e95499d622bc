"""Tests for the fallback chain: ordering, short-circuit, timeouts and exhaustion."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import MagicMock

import pytest

from ai_engine.domain.enums import AttemptOutcome
from ai_engine.domain.exceptions import AllProvidersExhaustedError, ProviderError
from ai_engine.shared.providers.orchestrator import FallbackOrchestrator
from ai_engine.shared.providers.types import AttemptEvent


# ═══════════════════════════════════════════════════════════════
#  Ordering & short-circuit
# ═══════════════════════════════════════════════════════════════
class TestOrdering:
    @pytest.mark.asyncio
    async def test_first_enabled_provider_answers(
        self, make_adapter, make_registry, call_log, chat_request
    ) -> None:
        a, b = make_adapter("alpha"), make_adapter("beta")
        orchestrator = FallbackOrchestrator(make_registry((a, True, 1000), (b, True, 1000)))

        response = await orchestrator.execute(chat_request)

        assert response.content == "ok:alpha"
        assert response.provider == "ALPHA"
        assert response.error is None
        assert call_log == ["alpha"]

    @pytest.mark.asyncio
    async def test_attempt_order_is_registry_order_on_every_call(
        self, make_adapter, make_registry, call_log, chat_request
    ) -> None:
        adapters = [
            make_adapter("alpha", error=ProviderError("ALPHA", "down")),
            make_adapter("beta", error=ProviderError("BETA", "down")),
            make_adapter("gamma"),
        ]
        orchestrator = FallbackOrchestrator(make_registry(*[(a, True, 1000) for a in adapters]))

        for _ in range(3):
            await orchestrator.execute(chat_request)

        assert call_log == ["alpha", "beta", "gamma"] * 3

    @pytest.mark.asyncio
    async def test_later_providers_not_invoked_after_success(
        self, make_adapter, make_registry, chat_request
    ) -> None:
        a = make_adapter("alpha", error=ProviderError("ALPHA", "quota exceeded"))
        b = make_adapter("beta")
        c = make_adapter("gamma")
        d = make_adapter("delta")
        orchestrator = FallbackOrchestrator(
            make_registry((a, True, 1000), (b, True, 1000), (c, True, 1000), (d, True, 1000))
        )

        response = await orchestrator.execute(chat_request)

        assert response.content == "ok:beta"
        assert (a.calls, b.calls, c.calls, d.calls) == (1, 1, 0, 0)

    @pytest.mark.asyncio
    async def test_request_passed_through_unchanged(
        self, make_adapter, make_registry, chat_request
    ) -> None:
        a = make_adapter("alpha", error=ProviderError("ALPHA", "down"))
        b = make_adapter("beta")
        orchestrator = FallbackOrchestrator(make_registry((a, True, 1000), (b, True, 1000)))

        await orchestrator.execute(chat_request)

        assert a.requests == [chat_request]
        assert b.requests[0] is chat_request


# ═══════════════════════════════════════════════════════════════
#  Disabled providers
# ═══════════════════════════════════════════════════════════════
class TestDisabledProviders:
    @pytest.mark.asyncio
    async def test_disabled_provider_never_invoked(
        self, make_adapter, make_registry, call_log, chat_request
    ) -> None:
        a, b = make_adapter("alpha"), make_adapter("beta")
        orchestrator = FallbackOrchestrator(make_registry((a, False, 1000), (b, True, 1000)))

        response = await orchestrator.execute(chat_request)

        assert response.content == "ok:beta"
        assert a.calls == 0
        assert call_log == ["beta"]

    @pytest.mark.asyncio
    async def test_disabled_provider_absent_from_aggregate_error(
        self, make_adapter, make_registry, chat_request
    ) -> None:
        a = make_adapter("alpha")
        b = make_adapter("beta", error=ProviderError("BETA", "BETA API error: bad request"))
        orchestrator = FallbackOrchestrator(make_registry((a, False, 1000), (b, True, 1000)))

        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await orchestrator.execute(chat_request)

        assert "ALPHA" not in str(exc_info.value)
        assert [f.provider_name for f in exc_info.value.failures] == ["BETA"]

    @pytest.mark.asyncio
    async def test_empty_registry_fails_without_calls(
        self, make_adapter, make_registry, call_log, chat_request
    ) -> None:
        a, b = make_adapter("alpha"), make_adapter("beta")
        orchestrator = FallbackOrchestrator(make_registry((a, False, 1000), (b, False, 1000)))

        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await orchestrator.execute(chat_request)

        err = exc_info.value
        assert err.no_providers is True
        assert err.failures == ()
        assert "No AI providers configured" in str(err)
        assert "All AI providers failed" not in str(err)
        assert call_log == []


# ═══════════════════════════════════════════════════════════════
#  Timeouts
# ═══════════════════════════════════════════════════════════════
class TestTimeouts:
    @pytest.mark.asyncio
    async def test_hanging_provider_times_out_and_chain_moves_on(
        self, make_adapter, make_registry, chat_request
    ) -> None:
        slow = make_adapter("slow", hang=True)
        fast = make_adapter("fast")
        events: list[AttemptEvent] = []
        orchestrator = FallbackOrchestrator(
            make_registry((slow, True, 50), (fast, True, 1000)),
            observers=[events.append],
        )

        start = time.monotonic()
        response = await orchestrator.execute(chat_request)
        elapsed = time.monotonic() - start

        assert response.content == "ok:fast"
        assert elapsed < 0.5
        assert events[0].provider_id == "slow"
        assert events[0].outcome == AttemptOutcome.TIMEOUT
        assert events[1].outcome == AttemptOutcome.SUCCESS
        await asyncio.sleep(0)
        assert slow.cancelled is True

    @pytest.mark.asyncio
    async def test_concrete_scenario(self, make_adapter, make_registry, call_log, chat_request) -> None:
        a = make_adapter("a", display_name="A")
        b = make_adapter("b", display_name="B", hang=True)
        c = make_adapter("c", display_name="C", content="hi", delay=0.01)
        orchestrator = FallbackOrchestrator(
            make_registry((a, False, 1000), (b, True, 50), (c, True, 1000))
        )

        start = time.monotonic()
        response = await orchestrator.execute(chat_request)
        elapsed_ms = (time.monotonic() - start) * 1000

        assert (response.content, response.provider, response.model) == ("hi", "C", "c-1")
        assert a.calls == 0
        assert call_log == ["b", "c"]
        assert 50 <= elapsed_ms < 400

    @pytest.mark.asyncio
    async def test_timeout_failure_names_provider_and_budget(
        self, make_adapter, make_registry, chat_request
    ) -> None:
        b = make_adapter("b", display_name="B", hang=True)
        orchestrator = FallbackOrchestrator(make_registry((b, True, 50)))

        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await orchestrator.execute(chat_request)

        (failure,) = exc_info.value.failures
        assert failure.provider_name == "B"
        assert failure.outcome == AttemptOutcome.TIMEOUT
        assert failure.message == "B timeout after 50ms"


# ═══════════════════════════════════════════════════════════════
#  Exhaustion
# ═══════════════════════════════════════════════════════════════
class TestExhaustion:
    @pytest.mark.asyncio
    async def test_aggregate_error_lists_every_failure_in_order(
        self, make_adapter, make_registry, chat_request
    ) -> None:
        a = make_adapter("alpha", error=ProviderError("ALPHA", "invalid api key"))
        b = make_adapter("beta", hang=True)
        c = make_adapter("gamma", error=RuntimeError("socket closed"))
        orchestrator = FallbackOrchestrator(
            make_registry((a, True, 1000), (b, True, 30), (c, True, 1000))
        )

        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await orchestrator.execute(chat_request)

        err = exc_info.value
        assert err.no_providers is False
        assert [f.provider_name for f in err.failures] == ["ALPHA", "BETA", "GAMMA"]
        assert [f.outcome for f in err.failures] == [
            AttemptOutcome.PROVIDER_ERROR,
            AttemptOutcome.TIMEOUT,
            AttemptOutcome.UNEXPECTED_ERROR,
        ]
        text = str(err)
        assert text.startswith("All AI providers failed:")
        lines = text.splitlines()[1:]
        assert lines == [
            "ALPHA: invalid api key",
            "BETA: BETA timeout after 30ms",
            "GAMMA: RuntimeError: socket closed",
        ]
        assert err.errors == {
            "ALPHA": "invalid api key",
            "BETA": "BETA timeout after 30ms",
            "GAMMA": "RuntimeError: socket closed",
        }

    @pytest.mark.asyncio
    async def test_failures_are_call_local(
        self, make_adapter, make_registry, chat_request
    ) -> None:
        a = make_adapter("alpha", error=ProviderError("ALPHA", "down"))
        orchestrator = FallbackOrchestrator(make_registry((a, True, 1000)))

        for _ in range(2):
            with pytest.raises(AllProvidersExhaustedError) as exc_info:
                await orchestrator.execute(chat_request)
            assert len(exc_info.value.failures) == 1


# ═══════════════════════════════════════════════════════════════
#  Cancellation
# ═══════════════════════════════════════════════════════════════
class TestCancellation:
    @pytest.mark.asyncio
    async def test_caller_cancellation_stops_chain(
        self, make_adapter, make_registry, call_log, chat_request
    ) -> None:
        a = make_adapter("alpha", hang=True)
        b = make_adapter("beta")
        orchestrator = FallbackOrchestrator(make_registry((a, True, 5000), (b, True, 5000)))

        task = asyncio.create_task(orchestrator.execute(chat_request))
        await asyncio.sleep(0.02)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0)

        assert a.cancelled is True
        assert b.calls == 0
        assert call_log == ["alpha"]


# ═══════════════════════════════════════════════════════════════
#  Observers
# ═══════════════════════════════════════════════════════════════
class TestObservers:
    @pytest.mark.asyncio
    async def test_one_event_per_attempt(self, make_adapter, make_registry, chat_request) -> None:
        a = make_adapter("alpha", error=ProviderError("ALPHA", "boom"))
        b = make_adapter("beta")
        c = make_adapter("gamma")
        observer = MagicMock()
        orchestrator = FallbackOrchestrator(
            make_registry((a, True, 1000), (b, True, 1000), (c, False, 1000)),
            observers=[observer],
        )

        await orchestrator.execute(chat_request)

        events = [call.args[0] for call in observer.call_args_list]
        assert [(e.provider_id, e.outcome) for e in events] == [
            ("alpha", AttemptOutcome.PROVIDER_ERROR),
            ("beta", AttemptOutcome.SUCCESS),
        ]
        assert events[0].error == "boom"
        assert events[1].error is None
        assert all(e.latency_ms >= 0 for e in events)

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_change_outcome(
        self, make_adapter, make_registry, chat_request
    ) -> None:
        seen: list[AttemptEvent] = []

        def broken(event: AttemptEvent) -> None:
            raise RuntimeError("metrics backend down")

        orchestrator = FallbackOrchestrator(
            make_registry((make_adapter("alpha"), True, 1000)),
            observers=[broken, seen.append],
        )

        response = await orchestrator.execute(chat_request)

        assert response.content == "ok:alpha"
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_add_observer(self, make_adapter, make_registry, chat_request) -> None:
        seen: list[AttemptEvent] = []
        orchestrator = FallbackOrchestrator(make_registry((make_adapter("alpha"), True, 1000)))
        orchestrator.add_observer(seen.append)

        await orchestrator.execute(chat_request)

        assert [e.provider_id for e in seen] == ["alpha"]
