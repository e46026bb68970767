"""Timeout, retry and circuit-breaker wrapper for remote calls.

Every backing-store call goes through :class:`ResilientCaller`.  An
attempt is raced against a fixed deadline; transient failures are retried
with exponential backoff; and a per-session failure counter trips a
circuit breaker once too many retries have accumulated.

The breaker has no cool-down: it resets its counter the moment it trips,
so the very next call starts fresh.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from cartfleet._constants import (
    TRANSIENT_ERROR_CODES,
    TRANSIENT_MESSAGE_MARKERS,
    TRANSIENT_STATUS_CODES,
)
from cartfleet.config import RetryPolicy
from cartfleet.exceptions import CartFleetApiError, CartFleetTimeoutError, ServiceUnavailableError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryState:
    """Consecutive transient-failure counter shared by one client session."""

    consecutive_failure_count: int = 0

    def record_failure(self) -> int:
        self.consecutive_failure_count += 1
        return self.consecutive_failure_count

    def reset(self) -> None:
        self.consecutive_failure_count = 0


def _discard_late_result(future: asyncio.Future[Any]) -> None:
    # Retrieve the exception so asyncio does not report it as unhandled.
    if not future.cancelled():
        future.exception()


async def with_timeout(awaitable: Awaitable[T], timeout_ms: float) -> T:
    """Await *awaitable*, failing with :class:`CartFleetTimeoutError` after *timeout_ms*.

    This is a race, not a cancellation: when the deadline wins, the
    underlying operation keeps running and its outcome is dropped.
    """
    future = asyncio.ensure_future(awaitable)
    # Attached up front so a cancelled caller never leaves the outcome unread.
    future.add_done_callback(_discard_late_result)
    done, _pending = await asyncio.wait({future}, timeout=timeout_ms / 1000)
    if future in done:
        return future.result()
    raise CartFleetTimeoutError(timeout_ms)


def is_transient(exc: BaseException) -> bool:
    """Return ``True`` when *exc* looks like a recoverable connectivity failure.

    Message markers are not applied to :class:`CartFleetApiError`: the text
    of a store-side rejection can mention anything, including "network".
    """
    if not isinstance(exc, CartFleetApiError):
        message = str(exc)
        if any(marker in message for marker in TRANSIENT_MESSAGE_MARKERS):
            return True
    if isinstance(exc, ConnectionRefusedError):
        return True
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code in TRANSIENT_ERROR_CODES:
        return True
    for attr in ("status", "status_code"):
        status = getattr(exc, attr, None)
        if isinstance(status, int) and status in TRANSIENT_STATUS_CODES:
            return True
    return False


class ResilientCaller:
    """Run async operations with a timeout, backoff retries and a circuit breaker.

    Usage::

        caller = ResilientCaller()
        carts = await caller.execute(lambda: transport.request("GET", "/carts"))

    Parameters
    ----------
    policy : RetryPolicy, optional
        Defaults for retries, delays, timeout and breaker threshold.
    state : RetryState, optional
        Failure counter.  Pass a shared instance to make several callers
        count against one breaker; by default each caller owns its own.
    sleep : callable, optional
        Coroutine function taking seconds; replaced in tests to record
        backoff delays without waiting.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        state: RetryState | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.state = state if state is not None else RetryState()
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: int | None = None,
        initial_delay_ms: float | None = None,
    ) -> T:
        """Run *operation* until it succeeds or fails terminally.

        Raises
        ------
        ServiceUnavailableError
            The breaker tripped on a transient failure.
        Exception
            Any non-transient failure, or the last transient failure once
            retries are exhausted, re-raised unchanged.
        """
        policy = self.policy
        retries = policy.max_retries if max_retries is None else max_retries
        delay_ms = policy.initial_delay_ms if initial_delay_ms is None else initial_delay_ms

        while True:
            try:
                return await with_timeout(operation(), policy.timeout_ms)
            except Exception as exc:
                transient = is_transient(exc)
                _logger.error(
                    "Operation failed (%s): %s",
                    "transient" if transient else "terminal",
                    exc,
                )
                if not transient or retries <= 0:
                    raise

                if self.state.consecutive_failure_count >= policy.breaker_threshold:
                    _logger.warning(
                        "Circuit breaker open after %d consecutive failures, giving up",
                        self.state.consecutive_failure_count,
                    )
                    self.state.reset()
                    raise ServiceUnavailableError(
                        "Service temporarily unavailable, please try again later"
                    ) from exc

                self.state.record_failure()
                retries -= 1
                _logger.info(
                    "Retrying operation in %.0fms. Attempts remaining: %d",
                    delay_ms,
                    retries,
                )
                await self._sleep(delay_ms / 1000)
                delay_ms *= policy.backoff_multiplier
