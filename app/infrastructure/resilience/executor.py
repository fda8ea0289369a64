"""Resilient execution of outbound operations.

``ResilientExecutor`` composes a ``RetryPolicy`` and an optional
``CircuitBreaker`` around a zero-argument coroutine function and publishes
the lifecycle of every call on an ``EventChannel``.

Event sequence for one call:
    OperationInProgress
    RetryAttempt*            one per failed attempt that will be retried
    RetrySuccess?            when the call succeeded on attempt >= 2
    OperationSuccess         on success
    RetryExhausted?          when more than one attempt failed terminally
    OperationFailure         on failure

Usage:
    executor = ResilientExecutor(
        retry_policy=RetryPolicy(RetryConfig.network()),
        circuit_breaker=CircuitBreaker("notes", channel=channel),
        channel=channel,
    )
    note = await executor.execute("notes_get", lambda: client.get(f"/notes/{id}"))
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from infrastructure.events import (
    EventChannel,
    LifecycleEvent,
    OperationFailure,
    OperationInProgress,
    OperationSuccess,
    RetryAttempt,
    RetryExhausted,
    RetrySuccess,
)
from infrastructure.logging import get_module_logger
from infrastructure.operations.errors import (
    OperationCancelledError,
    RetryExhaustedError,
)
from infrastructure.resilience.circuit_breaker import CircuitBreaker
from infrastructure.resilience.retry.policy import RetryPolicy

logger = get_module_logger()

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


class ResilientExecutor:
    """Runs operations with retries, circuit breaking and event emission.

    Args:
        retry_policy: Retry classification and backoff. Defaults to
            ``RetryPolicy()``.
        circuit_breaker: Breaker gating the operation. ``None`` disables
            circuit breaking.
        channel: Channel receiving lifecycle events. A private channel is
            created when omitted.
        gate_each_attempt: When True every attempt is a separate breaker
            call, so a breaker opening mid-sequence pre-empts the remaining
            retries. When False the whole retry sequence is one breaker call.
        sleep: Coroutine function used for backoff waits.
    """

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        channel: Optional[EventChannel] = None,
        gate_each_attempt: bool = True,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.retry_policy = retry_policy or RetryPolicy()
        self.circuit_breaker = circuit_breaker
        self.channel = channel if channel is not None else EventChannel("executor")
        self.gate_each_attempt = gate_each_attempt
        self._sleep = sleep

    async def execute(
        self,
        operation_name: str,
        action: Callable[[], Awaitable[T]],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> T:
        """Execute ``action`` with retries and circuit breaking.

        Args:
            operation_name: Logical operation name carried by every event
            action: Zero-argument coroutine function performing one attempt
            cancel_event: When set, stops the operation before the next
                attempt or during a backoff wait

        Returns:
            The value returned by the successful attempt

        Raises:
            RetryExhaustedError: A retryable failure persisted through every attempt
            OperationCancelledError: cancel_event was set
            CircuitOpenError: The breaker rejected an attempt
            Exception: Any non-retryable error raised by action, unchanged
        """
        self._emit(OperationInProgress(operation=operation_name))

        breaker = self.circuit_breaker
        try:
            if breaker is not None and not self.gate_each_attempt:
                result = await breaker.execute(
                    lambda: self._run_attempts(operation_name, action, cancel_event, None),
                    operation_name,
                )
            else:
                result = await self._run_attempts(
                    operation_name, action, cancel_event, breaker
                )
        except asyncio.CancelledError as e:
            logger.info("operation_task_cancelled", operation=operation_name)
            self._emit(OperationFailure(operation=operation_name, error=e))
            raise
        except Exception as e:
            self._emit(OperationFailure(operation=operation_name, error=e))
            raise

        self._emit(OperationSuccess(operation=operation_name, result=result))
        return result

    async def _run_attempts(
        self,
        operation_name: str,
        action: Callable[[], Awaitable[T]],
        cancel_event: Optional[asyncio.Event],
        breaker: Optional[CircuitBreaker],
    ) -> T:
        max_attempts = self.retry_policy.max_attempts
        attempt = 0

        while True:
            attempt += 1
            self._check_cancelled(operation_name, cancel_event, attempt)

            try:
                if breaker is not None:
                    result = await breaker.execute(action, operation_name)
                else:
                    result = await action()
            except Exception as e:
                retryable = self.retry_policy.should_retry(e)

                if retryable and attempt < max_attempts:
                    delay = self.retry_policy.delay_for_attempt(attempt)
                    logger.info(
                        "operation_attempt_failed",
                        operation=operation_name,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        delay_seconds=delay,
                        error=str(e),
                    )
                    self._emit(
                        RetryAttempt(
                            operation=operation_name,
                            attempt_number=attempt,
                            delay=delay,
                            cause=e,
                        )
                    )
                    await self._wait(operation_name, delay, cancel_event, attempt)
                    continue

                if attempt > 1:
                    self._emit(
                        RetryExhausted(
                            operation=operation_name, cause=e, total_attempts=attempt
                        )
                    )

                if retryable:
                    logger.error(
                        "operation_retries_exhausted",
                        operation=operation_name,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise RetryExhaustedError(operation_name, attempt, e) from e

                logger.warning(
                    "operation_failed_non_retryable",
                    operation=operation_name,
                    attempt=attempt,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise

            if attempt > 1:
                logger.info(
                    "operation_succeeded_after_retry",
                    operation=operation_name,
                    total_attempts=attempt,
                )
                self._emit(RetrySuccess(operation=operation_name, total_attempts=attempt))
            return result

    async def _wait(
        self,
        operation_name: str,
        delay: float,
        cancel_event: Optional[asyncio.Event],
        attempt: int,
    ) -> None:
        if cancel_event is None:
            await self._sleep(delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay))
        canceller = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, canceller):
                if not task.done():
                    task.cancel()
        self._check_cancelled(operation_name, cancel_event, attempt)

    def _check_cancelled(
        self,
        operation_name: str,
        cancel_event: Optional[asyncio.Event],
        attempt: int,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(
                "operation_cancelled",
                operation=operation_name,
                attempt=attempt,
            )
            raise OperationCancelledError(
                f"Operation '{operation_name}' was cancelled",
                operation=operation_name,
            )

    def _emit(self, event: LifecycleEvent) -> None:
        self.channel.publish(event)
