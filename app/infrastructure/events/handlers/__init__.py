"""Lifecycle event handlers."""

from infrastructure.events.handlers.health import (
    HealthChange,
    ServiceHealth,
    ServiceHealthMonitor,
)
from infrastructure.events.handlers.logging import LoggingHandler

__all__ = ["LoggingHandler", "ServiceHealthMonitor", "ServiceHealth", "HealthChange"]
