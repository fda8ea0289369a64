"""In-process broadcast channel for lifecycle events.

Publishing is synchronous: when ``publish`` returns, every listener has
been called and every subscription queue holds the event. Delivery order
per consumer equals publish order.

Usage:
    channel = EventChannel("notes")

    # Synchronous callback
    channel.add_listener(lambda event: print(event.event_type))

    # Async iteration
    subscription = channel.subscribe()
    async for event in subscription:
        ...
"""

import asyncio
from typing import Callable, List

from infrastructure.events.models import Event
from infrastructure.logging import get_module_logger

logger = get_module_logger()

EventListener = Callable[[Event], None]

_END = object()


class Subscription:
    """Async iterator over events published after it was created.

    Backed by an unbounded queue so a slow consumer never blocks the
    publisher. Iteration stops after ``close()`` or channel disposal, once
    the already buffered events are consumed.
    """

    def __init__(self, channel: "EventChannel"):
        self._channel = channel
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: Event) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def _end(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_END)

    def close(self) -> None:
        """Detach from the channel. Buffered events remain readable."""
        self._channel._remove_subscription(self)
        self._end()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Event:
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        return item


class EventChannel:
    """Ordered, multi-subscriber broadcast of lifecycle events.

    The channel never completes on its own; ``dispose()`` ends it.

    Args:
        name: Channel name used in logs.
    """

    def __init__(self, name: str = "events"):
        self.name = name
        self._subscriptions: List[Subscription] = []
        self._listeners: List[EventListener] = []
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions) + len(self._listeners)

    def publish(self, event: Event) -> None:
        """Deliver the event to every subscription and listener, in order.

        Listener exceptions are logged and do not affect other consumers.
        Events published after disposal are dropped.
        """
        if self._disposed:
            logger.error(
                "event_published_after_dispose",
                channel=self.name,
                event_type=event.event_type,
                operation=event.operation,
            )
            return

        for subscription in list(self._subscriptions):
            subscription._deliver(event)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                listener_name = getattr(listener, "__name__", type(listener).__name__)
                logger.error(
                    "event_listener_failed",
                    channel=self.name,
                    listener=listener_name,
                    event_type=event.event_type,
                    error=str(e),
                )

    def subscribe(self) -> Subscription:
        """Create a subscription receiving events published from now on.

        Subscribing to a disposed channel returns an already ended
        subscription.
        """
        subscription = Subscription(self)
        if self._disposed:
            subscription._end()
        else:
            self._subscriptions.append(subscription)
        return subscription

    def add_listener(self, listener: EventListener) -> Callable[[], None]:
        """Register a synchronous callback.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)
        logger.debug(
            "event_listener_added",
            channel=self.name,
            total_listeners=len(self._listeners),
        )
        return lambda: self.remove_listener(listener)

    def remove_listener(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _remove_subscription(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def dispose(self) -> None:
        """End all subscriptions and drop listeners. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        for subscription in self._subscriptions:
            subscription._end()
        self._subscriptions.clear()
        self._listeners.clear()
        logger.debug("event_channel_disposed", channel=self.name)
