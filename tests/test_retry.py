import asyncio
import socket
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from core.errors import AttemptTimeoutError, InvocationCancelledError, MalformedOutputError
from core.retry import (
    ResilientInvoker,
    RetryOptions,
    compute_backoff_delay,
    is_retryable_error,
)


class FixedRandom:
    def __init__(self, value=0.5):
        self.value = value

    def random(self):
        return self.value


def flaky(failures, error_factory=lambda: ConnectionError("connection reset")):
    """Operation that fails `failures` times, then returns "ok"."""
    state = {"calls": 0}

    async def operation():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise error_factory()
        return "ok"

    return operation, state


@pytest.mark.asyncio
@pytest.mark.parametrize("failures,max_retries,succeeds", [
    (0, 0, True),
    (1, 0, False),
    (2, 3, True),
    (3, 3, True),
    (4, 3, False),
])
async def test_budget_decides_success(failures, max_retries, succeeds):
    operation, state = flaky(failures)
    invoker = ResilientInvoker(sleep=AsyncMock())
    options = RetryOptions(max_retries=max_retries)

    if succeeds:
        assert await invoker.run(operation, options) == "ok"
        assert state["calls"] == failures + 1
    else:
        with pytest.raises(ConnectionError):
            await invoker.run(operation, options)
        assert state["calls"] == max_retries + 1


@pytest.mark.asyncio
async def test_delay_sequence_is_non_decreasing_and_capped():
    delays = []
    operation, _ = flaky(6)
    sleep = AsyncMock()
    invoker = ResilientInvoker(sleep=sleep)
    options = RetryOptions(max_retries=6, on_retry=lambda attempt, error, delay: delays.append(delay))

    assert await invoker.run(operation, options) == "ok"

    assert len(delays) == 6
    assert delays == sorted(delays)
    assert all(d <= options.max_delay_ms for d in delays)
    assert delays[-1] == options.max_delay_ms
    assert [c.args[0] for c in sleep.call_args_list] == [d / 1000 for d in delays]


def test_backoff_without_jitter_is_exponential():
    options = RetryOptions(initial_delay_ms=1000, backoff_multiplier=2, max_delay_ms=10000)
    rng = FixedRandom(0.5)
    assert [compute_backoff_delay(a, options, rng) for a in (1, 2, 3, 4, 5)] == [1000, 2000, 4000, 8000, 10000]


def test_backoff_jitter_bounds():
    options = RetryOptions(initial_delay_ms=1000)
    assert compute_backoff_delay(1, options, FixedRandom(0.0)) == pytest.approx(800)
    assert compute_backoff_delay(1, options, FixedRandom(1.0)) == pytest.approx(1200)


@pytest.mark.asyncio
async def test_non_retryable_error_makes_one_attempt():
    operation, state = flaky(5, lambda: ValueError("invalid request body"))
    invoker = ResilientInvoker(sleep=AsyncMock())

    with pytest.raises(ValueError):
        await invoker.run(operation, RetryOptions(max_retries=5))
    assert state["calls"] == 1


@pytest.mark.asyncio
async def test_last_error_is_rethrown_unchanged():
    errors = []

    async def operation():
        error = ConnectionError(f"reset {len(errors)}")
        errors.append(error)
        raise error

    invoker = ResilientInvoker(sleep=AsyncMock())
    with pytest.raises(ConnectionError) as exc_info:
        await invoker.run(operation, RetryOptions(max_retries=2))
    assert exc_info.value is errors[-1]
    assert len(errors) == 3


@pytest.mark.asyncio
async def test_slow_attempt_times_out_and_is_cancelled():
    cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    invoker = ResilientInvoker(sleep=AsyncMock())
    with pytest.raises(AttemptTimeoutError) as exc_info:
        await invoker.run(slow, RetryOptions(max_retries=0, timeout_ms=20))

    assert exc_info.value.timeout_ms == 20
    assert "Request timeout after 20ms" in str(exc_info.value)
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_timeouts_are_retried():
    calls = {"n": 0}

    async def slow_then_fast():
        calls["n"] += 1
        if calls["n"] == 1:
            await asyncio.sleep(10)
        return "ok"

    invoker = ResilientInvoker(sleep=AsyncMock())
    assert await invoker.run(slow_then_fast, RetryOptions(max_retries=1, timeout_ms=20)) == "ok"
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_cancel_event_abandons_in_flight_attempt():
    cancel = asyncio.Event()
    operation_cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            operation_cancelled.set()
            raise

    asyncio.get_running_loop().call_later(0.01, cancel.set)
    invoker = ResilientInvoker(sleep=AsyncMock())

    with pytest.raises(InvocationCancelledError):
        await invoker.run(slow, RetryOptions(max_retries=3, timeout_ms=5000), cancel_event=cancel)
    assert operation_cancelled.is_set()


@pytest.mark.asyncio
async def test_cancel_during_backoff_stops_retrying():
    cancel = asyncio.Event()
    state = {"calls": 0}

    async def failing():
        state["calls"] += 1
        cancel.set()
        raise ConnectionError("refused")

    invoker = ResilientInvoker()
    with pytest.raises(InvocationCancelledError):
        await invoker.run(failing, RetryOptions(max_retries=3, initial_delay_ms=5000), cancel_event=cancel)
    assert state["calls"] == 1


@pytest.mark.asyncio
async def test_already_cancelled_makes_no_attempt():
    cancel = asyncio.Event()
    cancel.set()
    operation = AsyncMock(return_value="ok")

    with pytest.raises(InvocationCancelledError):
        await ResilientInvoker().run(operation, cancel_event=cancel)
    operation.assert_not_called()


@pytest.mark.parametrize("error,expected", [
    (ConnectionRefusedError("refused"), True),
    (ConnectionResetError("reset"), True),
    (socket.gaierror("name resolution failed"), True),
    (AttemptTimeoutError(100), True),
    (SimpleNamespace(status_code=503), True),
    (SimpleNamespace(status_code=429), True),
    (SimpleNamespace(status_code=400), False),
    (SimpleNamespace(response=SimpleNamespace(status_code=502)), True),
    (RuntimeError("Service Unavailable"), True),
    (RuntimeError("upstream Bad Gateway"), True),
    (RuntimeError("connection terminated unexpectedly"), True),
    (RuntimeError("Connection closed by peer"), True),
    (RuntimeError("Request timed out"), True),
    (RuntimeError("timeout parameter invalid"), False),
    (RuntimeError("stream closed: invalid request"), False),
    (RuntimeError("account terminated"), False),
    (RuntimeError("invalid api key"), False),
    (asyncio.CancelledError(), False),
    (InvocationCancelledError("stop"), False),
    (MalformedOutputError("technical", 0, "empty payload"), False),
])
def test_is_retryable_error(error, expected):
    assert is_retryable_error(error) is expected
