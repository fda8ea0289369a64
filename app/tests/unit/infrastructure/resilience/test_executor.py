"""Unit tests for ResilientExecutor.

Backoff waits go through the ``fake_sleep`` fixture so no test actually
sleeps, and breakers use the ``fake_clock`` fixture.
"""

import asyncio
from unittest.mock import AsyncMock, call

import pytest

from infrastructure.events import (
    CircuitOpened,
    CircuitRejected,
    OperationFailure,
    OperationInProgress,
    OperationSuccess,
    RetryAttempt,
    RetryExhausted,
    RetrySuccess,
)
from infrastructure.operations.errors import (
    CircuitOpenError,
    OperationCancelledError,
    RetryExhaustedError,
    ServiceUnavailableError,
    TransientNetworkError,
    ValidationError,
)
from infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    ResilientExecutor,
    RetryConfig,
    RetryPolicy,
)

pytestmark = pytest.mark.unit


def _types(events):
    return [type(e) for e in events]


@pytest.fixture
def make_executor(channel, fake_clock, fake_sleep):
    def _make(
        max_attempts=3,
        failure_threshold=5,
        with_breaker=True,
        gate_each_attempt=True,
        sleep=None,
    ):
        breaker = None
        if with_breaker:
            breaker = CircuitBreaker(
                "notes",
                config=CircuitBreakerConfig(failure_threshold=failure_threshold),
                channel=channel,
                clock=fake_clock,
            )
        return ResilientExecutor(
            retry_policy=RetryPolicy(RetryConfig(max_attempts=max_attempts)),
            circuit_breaker=breaker,
            channel=channel,
            gate_each_attempt=gate_each_attempt,
            sleep=sleep or fake_sleep,
        )

    return _make


class TestSuccessfulExecution:
    """Tests for calls that succeed."""

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, make_executor, recorded_events, fake_sleep):
        executor = make_executor()
        action = AsyncMock(return_value={"id": "n-1"})

        result = await executor.execute("notes_read", action)

        assert result == {"id": "n-1"}
        action.assert_awaited_once()
        fake_sleep.assert_not_awaited()
        assert _types(recorded_events) == [OperationInProgress, OperationSuccess]
        assert recorded_events[1].result == {"id": "n-1"}
        assert all(e.operation == "notes_read" for e in recorded_events)

    @pytest.mark.asyncio
    async def test_success_after_two_transient_failures(
        self, make_executor, recorded_events, fake_sleep
    ):
        executor = make_executor(max_attempts=3)
        action = AsyncMock(
            side_effect=[TransientNetworkError("flaky"), TransientNetworkError("flaky"), "ok"]
        )

        result = await executor.execute("notes_read", action)

        assert result == "ok"
        assert action.await_count == 3
        assert fake_sleep.await_args_list == [call(1.0), call(2.0)]
        assert _types(recorded_events) == [
            OperationInProgress,
            RetryAttempt,
            RetryAttempt,
            RetrySuccess,
            OperationSuccess,
        ]
        first, second = recorded_events[1], recorded_events[2]
        assert (first.attempt_number, first.delay) == (1, 1.0)
        assert (second.attempt_number, second.delay) == (2, 2.0)
        assert isinstance(first.cause, TransientNetworkError)
        assert recorded_events[3].total_attempts == 3
        assert recorded_events[4].result == "ok"

    @pytest.mark.asyncio
    async def test_works_without_breaker(self, make_executor, recorded_events):
        executor = make_executor(with_breaker=False)
        action = AsyncMock(side_effect=[ConnectionError(), "ok"])

        assert await executor.execute("notes_list", action) == "ok"
        assert _types(recorded_events) == [
            OperationInProgress,
            RetryAttempt,
            RetrySuccess,
            OperationSuccess,
        ]

    @pytest.mark.asyncio
    async def test_private_channel_when_none_given(self):
        executor = ResilientExecutor(sleep=AsyncMock())
        events = []
        executor.channel.add_listener(events.append)

        await executor.execute("ping", AsyncMock(return_value=None))

        assert _types(events) == [OperationInProgress, OperationSuccess]


class TestFailedExecution:
    """Tests for calls that end in failure."""

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, make_executor, recorded_events, fake_sleep):
        executor = make_executor(max_attempts=3)
        last = ServiceUnavailableError("still down", status_code=503)
        action = AsyncMock(
            side_effect=[ServiceUnavailableError("down"), ServiceUnavailableError("down"), last]
        )

        with pytest.raises(RetryExhaustedError) as exc_info:
            await executor.execute("notes_read", action)

        error = exc_info.value
        assert error.attempts == 3
        assert error.last_error is last
        assert error.__cause__ is last
        assert error.operation == "notes_read"
        assert action.await_count == 3
        assert fake_sleep.await_count == 2
        assert _types(recorded_events) == [
            OperationInProgress,
            RetryAttempt,
            RetryAttempt,
            RetryExhausted,
            OperationFailure,
        ]
        assert recorded_events[3].total_attempts == 3
        assert recorded_events[3].cause is last
        assert recorded_events[4].error is error

    @pytest.mark.asyncio
    async def test_non_retryable_error_fails_immediately(
        self, make_executor, recorded_events, fake_sleep
    ):
        executor = make_executor()
        error = ValidationError("content is required")
        action = AsyncMock(side_effect=error)

        with pytest.raises(ValidationError) as exc_info:
            await executor.execute("notes_create", action)

        assert exc_info.value is error
        action.assert_awaited_once()
        fake_sleep.assert_not_awaited()
        assert _types(recorded_events) == [OperationInProgress, OperationFailure]

    @pytest.mark.asyncio
    async def test_unclassified_error_is_not_retried(self, make_executor, recorded_events):
        executor = make_executor()
        action = AsyncMock(side_effect=KeyError("data"))

        with pytest.raises(KeyError):
            await executor.execute("notes_read", action)

        action.assert_awaited_once()
        assert _types(recorded_events) == [OperationInProgress, OperationFailure]

    @pytest.mark.asyncio
    async def test_single_attempt_wraps_retryable_error(self, make_executor, recorded_events):
        executor = make_executor(max_attempts=1)
        action = AsyncMock(side_effect=TimeoutError())

        with pytest.raises(RetryExhaustedError) as exc_info:
            await executor.execute("notes_read", action)

        assert exc_info.value.attempts == 1
        assert _types(recorded_events) == [OperationInProgress, OperationFailure]

    @pytest.mark.asyncio
    async def test_non_retryable_after_retries_reports_exhaustion(
        self, make_executor, recorded_events
    ):
        executor = make_executor(max_attempts=5)
        action = AsyncMock(side_effect=[TimeoutError(), ValidationError("rejected")])

        with pytest.raises(ValidationError):
            await executor.execute("notes_update", action)

        assert _types(recorded_events) == [
            OperationInProgress,
            RetryAttempt,
            RetryExhausted,
            OperationFailure,
        ]
        assert recorded_events[2].total_attempts == 2


class TestCircuitBreakerInteraction:
    """Tests for breaker gating inside the retry loop."""

    @pytest.mark.asyncio
    async def test_breaker_opening_preempts_remaining_retries(
        self, make_executor, recorded_events
    ):
        executor = make_executor(max_attempts=5, failure_threshold=2)
        action = AsyncMock(side_effect=ServiceUnavailableError("down"))

        with pytest.raises(CircuitOpenError):
            await executor.execute("notes_read", action)

        assert action.await_count == 2
        assert executor.circuit_breaker.state == CircuitState.OPEN
        assert _types(recorded_events) == [
            OperationInProgress,
            RetryAttempt,
            CircuitOpened,
            RetryAttempt,
            CircuitRejected,
            RetryExhausted,
            OperationFailure,
        ]
        assert recorded_events[5].total_attempts == 3

    @pytest.mark.asyncio
    async def test_open_circuit_rejects_first_attempt(self, make_executor, recorded_events):
        executor = make_executor(max_attempts=3, failure_threshold=1)
        executor.circuit_breaker._transition_to_open()
        recorded_events.clear()
        action = AsyncMock(return_value="ok")

        with pytest.raises(CircuitOpenError):
            await executor.execute("notes_read", action)

        action.assert_not_awaited()
        assert _types(recorded_events) == [
            OperationInProgress,
            CircuitRejected,
            OperationFailure,
        ]

    @pytest.mark.asyncio
    async def test_single_gate_for_whole_sequence(self, make_executor, fake_sleep):
        executor = make_executor(max_attempts=3, failure_threshold=1, gate_each_attempt=False)
        action = AsyncMock(side_effect=TimeoutError())

        with pytest.raises(RetryExhaustedError):
            await executor.execute("notes_read", action)

        assert action.await_count == 3
        assert fake_sleep.await_count == 2
        assert executor.circuit_breaker.consecutive_failures == 1
        assert executor.circuit_breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_single_gate_success_after_retry(self, make_executor):
        executor = make_executor(max_attempts=3, failure_threshold=1, gate_each_attempt=False)
        action = AsyncMock(side_effect=[TimeoutError(), "ok"])

        assert await executor.execute("notes_read", action) == "ok"
        assert executor.circuit_breaker.state == CircuitState.CLOSED


class TestCancellation:
    """Tests for cooperative cancellation via cancel_event."""

    @pytest.mark.asyncio
    async def test_cancelled_before_first_attempt(self, make_executor, recorded_events):
        executor = make_executor()
        cancel = asyncio.Event()
        cancel.set()
        action = AsyncMock(return_value="ok")

        with pytest.raises(OperationCancelledError):
            await executor.execute("notes_read", action, cancel_event=cancel)

        action.assert_not_awaited()
        assert _types(recorded_events) == [OperationInProgress, OperationFailure]

    @pytest.mark.asyncio
    async def test_cancelled_during_backoff(self, make_executor, recorded_events):
        async def long_sleep(delay):
            await asyncio.sleep(3600)

        executor = make_executor(sleep=long_sleep)
        cancel = asyncio.Event()
        action = AsyncMock(side_effect=TimeoutError())
        asyncio.get_running_loop().call_later(0.01, cancel.set)

        with pytest.raises(OperationCancelledError):
            await asyncio.wait_for(
                executor.execute("notes_read", action, cancel_event=cancel), timeout=5
            )

        action.assert_awaited_once()
        assert _types(recorded_events) == [
            OperationInProgress,
            RetryAttempt,
            OperationFailure,
        ]

    @pytest.mark.asyncio
    async def test_unset_event_does_not_interfere(self, make_executor, fake_sleep):
        executor = make_executor()
        action = AsyncMock(side_effect=[TimeoutError(), "ok"])

        result = await executor.execute("notes_read", action, cancel_event=asyncio.Event())

        assert result == "ok"
        fake_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_cancellation_does_not_count_as_breaker_failure(self, make_executor):
        executor = make_executor(failure_threshold=1)
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError):
            await executor.execute("notes_read", AsyncMock(), cancel_event=cancel)

        assert executor.circuit_breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_task_cancelled_during_attempt(self, make_executor, recorded_events):
        executor = make_executor()
        started = asyncio.Event()

        async def hanging():
            started.set()
            await asyncio.Event().wait()

        task = asyncio.create_task(executor.execute("notes_read", hanging))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert _types(recorded_events) == [OperationInProgress, OperationFailure]
        assert isinstance(recorded_events[-1].error, asyncio.CancelledError)
        assert executor.circuit_breaker.consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_task_cancelled_during_backoff(self, make_executor, recorded_events):
        waiting = asyncio.Event()

        async def long_sleep(delay):
            waiting.set()
            await asyncio.sleep(3600)

        executor = make_executor(sleep=long_sleep)
        action = AsyncMock(side_effect=TimeoutError())

        task = asyncio.create_task(executor.execute("notes_read", action))
        await waiting.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert _types(recorded_events) == [
            OperationInProgress,
            RetryAttempt,
            OperationFailure,
        ]
