"""Lifecycle event system.

Operations and circuit breakers publish immutable events on an
``EventChannel``; consumers subscribe with an async iterator or register
synchronous listeners.

Usage:

    from infrastructure.events import EventChannel, RetryAttempt

    channel = EventChannel("tasks")

    def on_event(event):
        match event:
            case RetryAttempt(attempt_number=n, delay=d):
                print(f"retry {n} in {d}s")

    channel.add_listener(on_event)
"""

from infrastructure.events.channel import EventChannel, EventListener, Subscription
from infrastructure.events.models import (
    CircuitClosed,
    CircuitHalfOpened,
    CircuitOpened,
    CircuitRejected,
    Event,
    LifecycleEvent,
    OperationFailure,
    OperationInProgress,
    OperationSuccess,
    RetryAttempt,
    RetryExhausted,
    RetrySuccess,
)

__all__ = [
    "Event",
    "LifecycleEvent",
    "OperationInProgress",
    "OperationSuccess",
    "OperationFailure",
    "RetryAttempt",
    "RetrySuccess",
    "RetryExhausted",
    "CircuitOpened",
    "CircuitHalfOpened",
    "CircuitClosed",
    "CircuitRejected",
    "EventChannel",
    "EventListener",
    "Subscription",
]
