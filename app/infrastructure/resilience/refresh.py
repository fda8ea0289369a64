"""Single-flight coordination of credential refreshes.

When several API calls fail with an expired token at the same time, only
one of them should refresh the token. ``RefreshCoordinator`` runs the
refresh once and hands the same outcome to every caller that arrived
while it was in flight.
"""

import asyncio
from typing import Awaitable, Callable, Generic, List, TypeVar

from infrastructure.logging import get_module_logger

logger = get_module_logger()

T = TypeVar("T")

# Resolves a waiter's future when it must take over the refresh
_PROMOTED = object()


class RefreshCoordinator(Generic[T]):
    """Ensures at most one refresh runs at a time for a credential scope.

    The first caller becomes the leader and runs the action. Callers
    arriving while it is in flight wait in FIFO order and receive the
    leader's result, or its exception, without running the action.

    When the leader's task is cancelled, the first waiter still waiting
    becomes the leader and runs the action itself. Waiters never see a
    cancellation they did not receive.

    Args:
        name: Scope name used in logs
    """

    def __init__(self, name: str = "credentials"):
        self.name = name
        self._in_flight = False
        self._waiters: List[asyncio.Future] = []

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def waiting(self) -> int:
        return len(self._waiters)

    async def run_exclusive(self, action: Callable[[], Awaitable[T]]) -> T:
        """Run ``action`` unless a run is already in flight, then share its outcome.

        Args:
            action: Zero-argument coroutine function performing the refresh

        Returns:
            The result of the refresh that was in flight or was started

        Raises:
            Exception: Whatever the shared refresh raised
        """
        if not self._in_flight:
            self._in_flight = True
            return await self._lead(action)

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logger.debug(
            "refresh_waiting_for_in_flight",
            scope=self.name,
            waiting=len(self._waiters),
        )
        try:
            outcome = await waiter
        except asyncio.CancelledError:
            # Promoted just before this task was cancelled
            if waiter.done() and not waiter.cancelled() and waiter.result() is _PROMOTED:
                self._promote_next()
            raise

        if outcome is not _PROMOTED:
            return outcome
        logger.info("refresh_leadership_transferred", scope=self.name)
        return await self._lead(action)

    async def _lead(self, action: Callable[[], Awaitable[T]]) -> T:
        logger.debug("refresh_started", scope=self.name)
        try:
            result = await action()
        except asyncio.CancelledError:
            logger.info("refresh_leader_cancelled", scope=self.name, waiting=len(self._waiters))
            self._promote_next()
            raise
        except Exception as e:
            self._release(error=e)
            logger.warning("refresh_failed", scope=self.name, error=str(e))
            raise

        self._release(result=result)
        logger.debug("refresh_completed", scope=self.name)
        return result

    def _promote_next(self) -> None:
        while self._waiters:
            waiter = self._waiters.pop(0)
            # Cancelled waiters are skipped
            if not waiter.done():
                waiter.set_result(_PROMOTED)
                return
        self._in_flight = False

    def _release(self, result=None, error: BaseException | None = None) -> None:
        waiters, self._waiters = self._waiters, []
        self._in_flight = False

        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(result)
