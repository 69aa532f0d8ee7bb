"""Exponential-backoff retry around pinning operations."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    stop_before_delay,
    wait_exponential,
)

from wayback_pinner.errors import AuthenticationError, ConfigurationError

log = logging.getLogger(__name__)

T = TypeVar("T")

# Retrying these cannot change the outcome
NON_RETRYABLE = (ConfigurationError, AuthenticationError)


def _retryable(exc: BaseException) -> bool:
    # Cancellation and other BaseExceptions always propagate
    return isinstance(exc, Exception) and not isinstance(exc, NON_RETRYABLE)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    wait = state.next_action.sleep if state.next_action else 0
    log.warning(
        "Pin attempt %d failed: %s (retrying in %.1fs)",
        state.attempt_number, exc, wait,
    )


@dataclass
class RetryPolicy:
    """Bounded exponential backoff.

    ``attempts`` counts retries after the initial call. The operation
    stops at the attempt bound, or as soon as the next backoff wait
    would end past ``max_elapsed`` seconds. The last observed error
    propagates unchanged.
    """

    attempts: int = 3
    max_elapsed: float = 60.0
    multiplier: float = 0.5
    max_wait: float = 30.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.attempts + 1) | stop_before_delay(self.max_elapsed),
            wait=wait_exponential(multiplier=self.multiplier, max=self.max_wait),
            retry=retry_if_exception(_retryable),
            before_sleep=_log_retry,
            sleep=self.sleep,
            reraise=True,
        )

    async def call(self, op: Callable[[], Awaitable[T]]) -> T:
        """Run ``op`` until it succeeds or the bounds are hit."""
        return await self._retrying()(op)


DEFAULT_RETRY = RetryPolicy()


async def with_backoff(
    enabled: bool,
    op: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
) -> T:
    """Call ``op`` under ``policy`` when enabled, exactly once otherwise."""
    if not enabled:
        return await op()
    return await (policy or DEFAULT_RETRY).call(op)
