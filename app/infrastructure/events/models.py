"""Lifecycle event models.

Every outbound operation publishes a causally ordered sequence of these
events on an ``EventChannel``. The set is closed: consumers match on
``LifecycleEvent`` exhaustively.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, ClassVar, Dict, Union
from uuid import UUID, uuid4


@dataclass(frozen=True, kw_only=True)
class Event:
    """Base class for lifecycle events.

    Events are immutable records of a state change in an operation or a
    circuit breaker.
    """

    event_type: ClassVar[str] = "event"

    operation: str
    """Operation name, or the breaker name for circuit events."""

    timestamp: datetime = field(default_factory=datetime.now)
    """When the event occurred."""

    correlation_id: UUID = field(default_factory=uuid4)
    """Unique ID of this event."""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event to a dictionary.

        Timestamps become ISO strings, UUIDs and exceptions become strings.
        Other values are passed through as is.
        """
        data: Dict[str, Any] = {"event_type": self.event_type}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, (UUID, BaseException)):
                value = str(value)
            data[f.name] = value
        return data


@dataclass(frozen=True, kw_only=True)
class OperationInProgress(Event):
    event_type: ClassVar[str] = "operation.in_progress"


@dataclass(frozen=True, kw_only=True)
class OperationSuccess(Event):
    event_type: ClassVar[str] = "operation.success"

    result: Any = None


@dataclass(frozen=True, kw_only=True)
class OperationFailure(Event):
    event_type: ClassVar[str] = "operation.failure"

    error: BaseException


@dataclass(frozen=True, kw_only=True)
class RetryAttempt(Event):
    """A failed attempt that will be retried after ``delay`` seconds."""

    event_type: ClassVar[str] = "retry.attempt"

    attempt_number: int
    delay: float
    cause: BaseException


@dataclass(frozen=True, kw_only=True)
class RetrySuccess(Event):
    """The operation succeeded on attempt ``total_attempts`` (always >= 2)."""

    event_type: ClassVar[str] = "retry.success"

    total_attempts: int


@dataclass(frozen=True, kw_only=True)
class RetryExhausted(Event):
    event_type: ClassVar[str] = "retry.exhausted"

    cause: BaseException
    total_attempts: int


@dataclass(frozen=True, kw_only=True)
class CircuitOpened(Event):
    event_type: ClassVar[str] = "circuit.opened"


@dataclass(frozen=True, kw_only=True)
class CircuitHalfOpened(Event):
    event_type: ClassVar[str] = "circuit.half_opened"


@dataclass(frozen=True, kw_only=True)
class CircuitClosed(Event):
    event_type: ClassVar[str] = "circuit.closed"


@dataclass(frozen=True, kw_only=True)
class CircuitRejected(Event):
    event_type: ClassVar[str] = "circuit.rejected"


LifecycleEvent = Union[
    OperationInProgress,
    OperationSuccess,
    OperationFailure,
    RetryAttempt,
    RetrySuccess,
    RetryExhausted,
    CircuitOpened,
    CircuitHalfOpened,
    CircuitClosed,
    CircuitRejected,
]
