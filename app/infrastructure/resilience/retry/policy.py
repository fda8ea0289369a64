"""Retry decision logic.

``RetryPolicy`` answers two questions for the executor: is this error
worth another attempt, and how long to wait before it. It holds no
per-operation state.
"""

import random
from typing import Iterable, Optional, Tuple, Type

import httpx

from infrastructure.operations.errors import (
    CircuitOpenError,
    OperationCancelledError,
    PermanentDomainError,
    TransientNetworkError,
    ValidationError,
)
from infrastructure.resilience.retry.config import RetryConfig

DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    TransientNetworkError,
    httpx.TransportError,
    TimeoutError,
    ConnectionError,
)

DEFAULT_RETRYABLE_STATUS_CODES = frozenset(range(500, 600))

# Checked before the retryable types so a subclass can never opt back in
NEVER_RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    ValidationError,
    PermanentDomainError,
    CircuitOpenError,
    OperationCancelledError,
)


class RetryPolicy:
    """Classifies errors and computes exponential backoff delays.

    Args:
        config: Backoff parameters. Defaults to ``RetryConfig()``.
        retryable_exceptions: Exception types considered transient.
            ``httpx.TransportError`` covers connection failures and
            ``httpx.TimeoutException``.
        retryable_status_codes: Status codes of ``httpx.HTTPStatusError``
            considered transient. Defaults to every 5xx.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        retryable_exceptions: Iterable[Type[BaseException]] = DEFAULT_RETRYABLE_EXCEPTIONS,
        retryable_status_codes: Iterable[int] = DEFAULT_RETRYABLE_STATUS_CODES,
    ):
        self.config = config or RetryConfig()
        self.retryable_exceptions = tuple(retryable_exceptions)
        self.retryable_status_codes = frozenset(retryable_status_codes)

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    def should_retry(self, error: BaseException) -> bool:
        """Return True if ``error`` is transient and another attempt may succeed.

        Validation, domain, circuit-open and cancellation errors are never
        retried. Unclassified errors are not retried either.
        """
        if isinstance(error, NEVER_RETRYABLE_EXCEPTIONS):
            return False
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code in self.retryable_status_codes
        return isinstance(error, self.retryable_exceptions)

    def delay_for_attempt(self, attempt: int) -> float:
        """Delay in seconds to wait after failed attempt number ``attempt``.

        ``attempt`` is 1-based. Returns 0 for attempt <= 0, otherwise
        ``min(max_delay, initial_delay * backoff_factor ** (attempt - 1))``.
        With jitter enabled the result is drawn uniformly from [0, delay].
        """
        if attempt <= 0:
            return 0.0

        config = self.config
        try:
            delay = config.initial_delay * (config.backoff_factor ** (attempt - 1))
        except OverflowError:
            delay = config.max_delay
        delay = min(config.max_delay, delay)

        if config.jitter:
            delay = random.uniform(0, delay)
        return delay
