"""Service health projection of circuit breaker events.

Translates breaker transitions into service level signals: an opened
circuit degrades the service, a closed circuit restores it and a rejected
call is counted as an unavailable operation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from infrastructure.events.models import (
    CircuitClosed,
    CircuitOpened,
    CircuitRejected,
    LifecycleEvent,
)
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class ServiceHealth(Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class HealthChange:
    """A service health transition.

    Attributes:
        service: Breaker name the change was observed on
        status: New health status
        timestamp: Time of the underlying breaker transition
    """

    service: str
    status: ServiceHealth
    timestamp: datetime


@dataclass
class ServiceHealthMonitor:
    """Tracks health per breaker name from lifecycle events.

    Register with ``channel.add_listener(monitor.handle)``. Operation and
    retry events are ignored.
    """

    on_change: Optional[Callable[[HealthChange], None]] = None
    history: List[HealthChange] = field(default_factory=list)
    rejected_operations: int = 0
    _status: dict = field(default_factory=dict, init=False, repr=False)

    def status(self, service: str) -> ServiceHealth:
        return self._status.get(service, ServiceHealth.HEALTHY)

    def is_degraded(self) -> bool:
        """True if any observed service is degraded."""
        return ServiceHealth.DEGRADED in self._status.values()

    def handle(self, event: LifecycleEvent) -> None:
        match event:
            case CircuitOpened():
                self._transition(event.operation, ServiceHealth.DEGRADED, event.timestamp)
            case CircuitClosed():
                self._transition(event.operation, ServiceHealth.HEALTHY, event.timestamp)
            case CircuitRejected():
                self.rejected_operations += 1
                logger.info(
                    "service_unavailable",
                    service=event.operation,
                    rejected_operations=self.rejected_operations,
                )
            case _:
                # Half-open and operation events carry no health signal
                pass

    def _transition(
        self, service: str, status: ServiceHealth, timestamp: datetime
    ) -> None:
        if self.status(service) == status:
            return
        self._status[service] = status
        change = HealthChange(service=service, status=status, timestamp=timestamp)
        self.history.append(change)
        if status == ServiceHealth.DEGRADED:
            logger.warning("service_degraded", service=service)
        else:
            logger.info("service_restored", service=service)
        if self.on_change is not None:
            self.on_change(change)
