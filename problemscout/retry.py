"""Exponential backoff retries for provider and gateway calls.

Only exceptions listed in ``retryable`` are retried; anything else
propagates on the first attempt. Once attempts run out the last error is
chained onto a RetryExhaustedError.
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import structlog

from problemscout.errors import RetryExhaustedError
from problemscout.metrics import retry_attempts_total, retry_exhausted_total

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger()

T = TypeVar("T")


def _backoff_delay(attempt: int, base_delay: float, max_delay: float, jitter: bool) -> float:
    """Delay before retry number *attempt* (0-based), scaled by 0.5-1.5 when jittered."""
    delay = min(base_delay * (2**attempt), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


@dataclass
class _Attempts:
    """Bookkeeping shared by the sync and async retry loops."""

    label: str
    max_retries: int
    base_delay: float
    max_delay: float
    jitter: bool
    last_exc: Exception | None = None

    def failed(self, attempt: int, exc: Exception) -> float | None:
        """Record a failure; return the delay before the next try, or None when spent."""
        self.last_exc = exc
        if attempt >= self.max_retries:
            return None
        retry_attempts_total.labels(fn_name=self.label).inc()
        delay = _backoff_delay(attempt, self.base_delay, self.max_delay, self.jitter)
        logger.warning(
            "Retrying after failure",
            fn=self.label,
            attempt=attempt + 1,
            max_retries=self.max_retries,
            delay_s=round(delay, 2),
            error=str(exc),
        )
        return delay

    def exhausted(self) -> RetryExhaustedError:
        retry_exhausted_total.labels(fn_name=self.label).inc()
        logger.error("Retries exhausted", fn=self.label, error=str(self.last_exc))
        return RetryExhaustedError(f"Failed after {self.max_retries + 1} attempts")


def with_retry(
    fn: Callable[[], T],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retryable: tuple[type[Exception], ...] = (Exception,),
    label: str = "",
) -> T:
    """Call *fn* until it succeeds, sleeping with exponential backoff between tries."""
    state = _Attempts(
        label or getattr(fn, "__name__", "fn"), max_retries, base_delay, max_delay, jitter
    )
    attempt = 0
    while True:
        try:
            return fn()
        except retryable as exc:
            delay = state.failed(attempt, exc)
            if delay is None:
                raise state.exhausted() from exc
        time.sleep(delay)
        attempt += 1


async def async_with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retryable: tuple[type[Exception], ...] = (Exception,),
    label: str = "",
) -> T:
    """Async variant of with_retry; waits with asyncio.sleep."""
    state = _Attempts(
        label or getattr(fn, "__name__", "fn"), max_retries, base_delay, max_delay, jitter
    )
    attempt = 0
    while True:
        try:
            return await fn()
        except retryable as exc:
            delay = state.failed(attempt, exc)
            if delay is None:
                raise state.exhausted() from exc
        await asyncio.sleep(delay)
        attempt += 1
