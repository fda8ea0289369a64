"""Circuit breaker for outbound API operations.

The circuit breaker pattern prevents hammering a failing backend:
1. CLOSED state: Normal operation, calls pass through
2. OPEN state: Fast-fail calls without invoking them (after threshold failures)
3. HALF_OPEN state: Admit a limited number of trial calls

State transitions:
- CLOSED -> OPEN: After failure_threshold consecutive failures
- OPEN -> HALF_OPEN: On the first call after reset_timeout has elapsed
- HALF_OPEN -> CLOSED: After half_open_max_attempts successful trials
- HALF_OPEN -> OPEN: If any trial fails

Every transition and every rejection is published on the breaker's
EventChannel when one is attached.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from infrastructure.events import (
    CircuitClosed,
    CircuitHalfOpened,
    CircuitOpened,
    CircuitRejected,
    Event,
    EventChannel,
)
from infrastructure.logging import get_module_logger
from infrastructure.operations.errors import (
    CircuitOpenError,
    OperationCancelledError,
    PermanentDomainError,
    ValidationError,
)

if TYPE_CHECKING:
    from infrastructure.configuration import CircuitBreakerSettings

logger = get_module_logger()

T = TypeVar("T")

# Business rejections prove the backend is reachable
DEFAULT_IGNORED_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    ValidationError,
    PermanentDomainError,
)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Circuit breaker thresholds.

    Attributes:
        failure_threshold: Consecutive failures before opening
        reset_timeout: Seconds to stay OPEN before admitting a trial call
        half_open_max_attempts: Trial calls admitted in HALF_OPEN; this many
            successes close the circuit
    """

    failure_threshold: int = 5
    reset_timeout: float = 30.0
    half_open_max_attempts: int = 3

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if self.reset_timeout <= 0:
            raise ValueError("reset_timeout must be > 0")
        if self.half_open_max_attempts < 1:
            raise ValueError("half_open_max_attempts must be at least 1")

    @classmethod
    def from_settings(
        cls, breaker_settings: "CircuitBreakerSettings"
    ) -> "CircuitBreakerConfig":
        return cls(
            failure_threshold=breaker_settings.failure_threshold,
            reset_timeout=breaker_settings.reset_timeout_seconds,
            half_open_max_attempts=breaker_settings.half_open_max_attempts,
        )


class CircuitBreaker:
    """Circuit breaker gating async operations.

    One instance per resource family. State is only mutated from inside
    ``execute`` and ``reset``; all calls run on a single event loop.

    Args:
        name: Name of the circuit (typically the data source name)
        config: Thresholds. Defaults to ``CircuitBreakerConfig()``.
        channel: Optional channel receiving circuit events
        clock: Monotonic time source in seconds
        ignored_exceptions: Exception types recorded as successes
    """

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        channel: Optional[EventChannel] = None,
        clock: Callable[[], float] = time.monotonic,
        ignored_exceptions: Iterable[Type[BaseException]] = DEFAULT_IGNORED_EXCEPTIONS,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self.channel = channel
        self._clock = clock
        self._ignored_exceptions = tuple(ignored_exceptions)

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: Optional[float] = None
        self._half_open_attempts = 0
        self._half_open_successes = 0
        # Bumped on every state transition
        self._generation = 0

    @property
    def state(self) -> CircuitState:
        """Current state, without applying the reset timeout."""
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: Optional[str] = None,
    ) -> T:
        """Run ``operation`` through the breaker.

        The outcome of the operation is returned or raised unchanged. The
        breaker never retries.

        Args:
            operation: Zero-argument coroutine function
            operation_name: Logical name used in logs

        Returns:
            Result from operation

        Raises:
            CircuitOpenError: If the call was rejected without running
            Exception: Any exception raised by operation
        """
        generation = self._admit(operation_name)

        try:
            result = await operation()
        except (asyncio.CancelledError, OperationCancelledError):
            if self._is_current(generation, operation_name):
                self._release_trial()
            raise
        except Exception as e:
            if self._is_current(generation, operation_name):
                if isinstance(e, self._ignored_exceptions):
                    self._on_success()
                else:
                    self._on_failure(e, operation_name)
            raise

        if self._is_current(generation, operation_name):
            self._on_success()
        return result

    def _is_current(self, generation: int, operation_name: Optional[str]) -> bool:
        # Outcomes of calls admitted before the last transition are dropped
        if generation == self._generation:
            return True
        logger.debug(
            "circuit_breaker_stale_outcome_ignored",
            name=self.name,
            operation=operation_name,
            admitted_generation=generation,
            current_generation=self._generation,
        )
        return False

    def _admit(self, operation_name: Optional[str]) -> int:
        if self._state == CircuitState.OPEN:
            elapsed = self._clock() - (self._opened_at or 0.0)
            if elapsed >= self.config.reset_timeout:
                self._transition_to_half_open()
            else:
                self._reject(operation_name, self.config.reset_timeout - elapsed)

        if self._state == CircuitState.HALF_OPEN:
            if self._half_open_attempts >= self.config.half_open_max_attempts:
                logger.debug(
                    "circuit_breaker_half_open_limit",
                    name=self.name,
                    attempts=self._half_open_attempts,
                )
                self._reject(operation_name, 0.0)
            self._half_open_attempts += 1

        return self._generation

    def _reject(self, operation_name: Optional[str], retry_in: float) -> None:
        logger.warning(
            "circuit_breaker_open",
            name=self.name,
            operation=operation_name,
            failure_count=self._consecutive_failures,
            retry_in_seconds=round(retry_in, 3),
        )
        self._emit(CircuitRejected(operation=self.name))
        raise CircuitOpenError(self.name, retry_in)

    def _release_trial(self) -> None:
        if self._state == CircuitState.HALF_OPEN and self._half_open_attempts > 0:
            self._half_open_attempts -= 1

    def _on_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._half_open_successes += 1
            logger.info(
                "circuit_breaker_success_half_open",
                name=self.name,
                success_count=self._half_open_successes,
            )
            if self._half_open_successes >= self.config.half_open_max_attempts:
                self._transition_to_closed()
        elif self._state == CircuitState.CLOSED:
            if self._consecutive_failures > 0:
                logger.debug(
                    "circuit_breaker_failure_count_reset",
                    name=self.name,
                    previous_failures=self._consecutive_failures,
                )
                self._consecutive_failures = 0
        # Late outcomes arriving while OPEN are ignored

    def _on_failure(self, exception: BaseException, operation_name: Optional[str]) -> None:
        if self._state == CircuitState.HALF_OPEN:
            logger.warning(
                "circuit_breaker_recovery_failed",
                name=self.name,
                operation=operation_name,
                error=str(exception),
            )
            self._transition_to_open()
        elif self._state == CircuitState.CLOSED:
            self._consecutive_failures += 1
            if self._consecutive_failures >= self.config.failure_threshold:
                logger.error(
                    "circuit_breaker_threshold_exceeded",
                    name=self.name,
                    operation=operation_name,
                    failure_count=self._consecutive_failures,
                    threshold=self.config.failure_threshold,
                    error=str(exception),
                )
                self._transition_to_open()
            else:
                logger.warning(
                    "circuit_breaker_failure",
                    name=self.name,
                    operation=operation_name,
                    failure_count=self._consecutive_failures,
                    threshold=self.config.failure_threshold,
                    error=str(exception),
                )

    def _transition_to_closed(self) -> None:
        logger.info("circuit_breaker_closed", name=self.name)
        self._state = CircuitState.CLOSED
        self._generation += 1
        self._consecutive_failures = 0
        self._opened_at = None
        self._half_open_attempts = 0
        self._half_open_successes = 0
        self._emit(CircuitClosed(operation=self.name))

    def _transition_to_open(self) -> None:
        logger.error(
            "circuit_breaker_opened",
            name=self.name,
            reset_timeout_seconds=self.config.reset_timeout,
        )
        self._state = CircuitState.OPEN
        self._generation += 1
        self._opened_at = self._clock()
        self._half_open_attempts = 0
        self._half_open_successes = 0
        self._emit(CircuitOpened(operation=self.name))

    def _transition_to_half_open(self) -> None:
        logger.info("circuit_breaker_half_open", name=self.name)
        self._state = CircuitState.HALF_OPEN
        self._generation += 1
        self._half_open_attempts = 0
        self._half_open_successes = 0
        self._emit(CircuitHalfOpened(operation=self.name))

    def _emit(self, event: Event) -> None:
        if self.channel is not None:
            self.channel.publish(event)

    def get_stats(self) -> Dict[str, Any]:
        """Get a read-only snapshot of the breaker state."""
        return {
            "name": self.name,
            "state": self._state.value,
            "consecutive_failures": self._consecutive_failures,
            "failure_threshold": self.config.failure_threshold,
            "opened_at": self._opened_at,
            "reset_timeout": self.config.reset_timeout,
            "half_open_attempts": self._half_open_attempts,
            "half_open_successes": self._half_open_successes,
        }

    def reset(self) -> None:
        """Manually close the breaker (for testing/admin operations)."""
        logger.info("circuit_breaker_manual_reset", name=self.name)
        if self._state == CircuitState.CLOSED:
            self._consecutive_failures = 0
            return
        self._transition_to_closed()
