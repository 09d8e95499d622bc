"""Deadline guard for a single provider attempt."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

import structlog

from ai_engine.domain.exceptions import ProviderTimeoutError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _discard_outcome(task: asyncio.Task[object]) -> None:
    # Abandoned task: consume the result so asyncio does not report it.
    if not task.cancelled():
        task.exception()


async def with_timeout(operation: Awaitable[T], duration_ms: int, provider_name: str) -> T:
    """Await ``operation`` for at most ``duration_ms`` milliseconds.

    On expiry the operation is cancelled and abandoned: it is never awaited
    again and whatever it eventually produces is discarded. Cancelling the
    caller cancels the operation too.

    Raises:
        ProviderTimeoutError: the deadline passed first.
    """
    task = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({task}, timeout=duration_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        task.add_done_callback(_discard_outcome)
        raise

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(_discard_outcome)
    logger.debug("provider_deadline_expired", provider=provider_name, timeout_ms=duration_ms)
    raise ProviderTimeoutError(provider_name, duration_ms)
