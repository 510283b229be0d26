"""
Resilient invocation of remote calls.

Runs an async operation with a per-attempt timeout, exponential backoff with
jitter, and a classifier that decides which failures deserve another try.
Non-retryable errors and an exhausted budget re-raise the original error
unchanged so callers can branch on it.
"""

import asyncio
import random
import socket
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional, TypeVar

import openai

from core.errors import AttemptTimeoutError, InvocationCancelledError, MalformedOutputError, PlanValidationError
from core.utils import get_logger

logger = get_logger("ResilientInvoker")

T = TypeVar("T")

JITTER_RATIO = 0.2

RETRYABLE_MESSAGE_FRAGMENTS = (
    "service unavailable",
    "internal server error",
    "bad gateway",
    "gateway timeout",
    "fetch failed",
    "timed out",
    "request timeout",
    "gateway time-out",
    "connection terminated",
    "connection closed",
    "econnaborted",
)

NETWORK_ERRORS = (
    ConnectionError,        # refused, reset, aborted
    socket.gaierror,        # DNS failure
    TimeoutError,
    asyncio.TimeoutError,
    openai.APIConnectionError,  # includes APITimeoutError
)


@dataclass(frozen=True)
class RetryOptions:
    """Retry policy for one kind of call. All values are overridable."""
    max_retries: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2.0
    timeout_ms: int = 30000
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None

    def with_overrides(self, **changes) -> "RetryOptions":
        return replace(self, **changes)


def _status_code(error: BaseException) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None) or getattr(response, "status", None)
    return status if isinstance(status, int) else None


def is_retryable_error(error: BaseException) -> bool:
    """
    Classify a failure as transient.

    Retryable: network-level failures, timeouts, any 5xx or 429 status,
    and upstream messages that signal temporary unavailability.
    Cancellation is never retryable.
    """
    if isinstance(error, (asyncio.CancelledError, InvocationCancelledError)):
        return False
    if isinstance(error, (MalformedOutputError, PlanValidationError)):
        return False
    if isinstance(error, NETWORK_ERRORS):
        return True

    status = _status_code(error)
    if status is not None and (status >= 500 or status == 429):
        return True

    message = str(error).lower()
    return any(fragment in message for fragment in RETRYABLE_MESSAGE_FRAGMENTS)


def compute_backoff_delay(attempt: int, options: RetryOptions, rng: random.Random) -> float:
    """
    Delay in milliseconds before retry number `attempt` (1-based).

    initial * multiplier^(attempt-1), with +/-20% uniform jitter, capped at max.
    """
    exponential = options.initial_delay_ms * (options.backoff_multiplier ** (attempt - 1))
    jitter = exponential * JITTER_RATIO * (rng.random() * 2 - 1)
    return min(exponential + jitter, options.max_delay_ms)


class ResilientInvoker:
    """
    Generic async retry wrapper.

    Usage:
        invoker = ResilientInvoker()
        result = await invoker.run(lambda: client.call(...), RetryOptions(max_retries=6))
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        options: Optional[RetryOptions] = None,
        cancel_event: Optional[asyncio.Event] = None,
        label: str = "operation",
    ) -> T:
        """
        Execute `operation` until it succeeds, fails permanently, or the budget runs out.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            options: Retry policy (defaults to RetryOptions())
            cancel_event: When set, the in-flight attempt is abandoned promptly
            label: Name used in log lines

        Raises:
            The last error raised by `operation`, unchanged.
            InvocationCancelledError if `cancel_event` fires.
        """
        opts = options or RetryOptions()
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._attempt(operation, opts.timeout_ms, cancel_event)
            except asyncio.CancelledError:
                raise
            except Exception as error:
                if attempt > opts.max_retries or not is_retryable_error(error):
                    raise

                delay_ms = compute_backoff_delay(attempt, opts, self._rng)
                logger.warning(
                    f"{label} failed (retry {attempt}/{opts.max_retries}), "
                    f"retrying in {round(delay_ms)}ms: {error}"
                )
                if opts.on_retry is not None:
                    opts.on_retry(attempt, error, delay_ms)
                await self._wait(delay_ms, cancel_event)

    async def _attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        timeout_ms: int,
        cancel_event: Optional[asyncio.Event],
    ) -> T:
        """Race one attempt against its timer and the cancel signal; cancel the loser."""
        if cancel_event is not None and cancel_event.is_set():
            raise InvocationCancelledError("cancelled before attempt")

        task = asyncio.ensure_future(operation())
        waiters = {task}
        cancel_waiter = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout_ms / 1000, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for pending in waiters:
                if not pending.done():
                    pending.cancel()

        if task in done:
            return task.result()
        # The operation was cancelled above; let it unwind before moving on.
        await asyncio.gather(task, return_exceptions=True)
        if cancel_waiter is not None and cancel_waiter in done:
            raise InvocationCancelledError("cancelled during attempt")
        raise AttemptTimeoutError(timeout_ms)

    async def _wait(self, delay_ms: float, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is None:
            await self._sleep(delay_ms / 1000)
            return
        sleeper = asyncio.ensure_future(self._sleep(delay_ms / 1000))
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for pending in (sleeper, cancel_waiter):
                if not pending.done():
                    pending.cancel()
        if cancel_event.is_set():
            raise InvocationCancelledError("cancelled during backoff")
