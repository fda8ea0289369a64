"""Logging handler for lifecycle events.

Writes each event to structured logs at a level matching its severity.
"""

from typing import assert_never

from infrastructure.events.models import (
    CircuitClosed,
    CircuitHalfOpened,
    CircuitOpened,
    CircuitRejected,
    LifecycleEvent,
    OperationFailure,
    OperationInProgress,
    OperationSuccess,
    RetryAttempt,
    RetryExhausted,
    RetrySuccess,
)
from infrastructure.logging import get_module_logger
from infrastructure.operations.classifiers import classify_exception

logger = get_module_logger()


class LoggingHandler:
    """Handles structured logging for lifecycle events.

    Register with ``channel.add_listener(LoggingHandler().handle)``.
    """

    def __init__(self):
        self.log = logger.bind(component="logging_handler")

    def handle(self, event: LifecycleEvent) -> None:
        log = self.log.bind(
            event_type=event.event_type,
            operation=event.operation,
            correlation_id=str(event.correlation_id),
        )
        match event:
            case OperationInProgress():
                log.debug("operation_started")
            case OperationSuccess():
                log.debug("operation_succeeded")
            case OperationFailure(error=error):
                outcome = classify_exception(error)
                log.warning(
                    "operation_failed",
                    error=str(error),
                    error_type=type(error).__name__,
                    error_code=outcome.error_code,
                    retryable=outcome.is_retryable,
                )
            case RetryAttempt(attempt_number=attempt, delay=delay, cause=cause):
                log.info(
                    "operation_retry_scheduled",
                    attempt=attempt,
                    delay_seconds=delay,
                    error=str(cause),
                )
            case RetrySuccess(total_attempts=total):
                log.info("operation_succeeded_after_retry", total_attempts=total)
            case RetryExhausted(cause=cause, total_attempts=total):
                log.error(
                    "operation_retries_exhausted",
                    total_attempts=total,
                    error=str(cause),
                )
            case CircuitOpened():
                log.warning("circuit_opened")
            case CircuitHalfOpened():
                log.info("circuit_half_opened")
            case CircuitClosed():
                log.info("circuit_closed")
            case CircuitRejected():
                log.warning("circuit_rejected_call")
            case _:
                assert_never(event)
