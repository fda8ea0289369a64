"""Resilience service for dependency injection.

Builds circuit breakers and executors from settings and keeps a registry
of breakers for monitoring.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING

from infrastructure.events import EventChannel
from infrastructure.logging import get_module_logger
from infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from infrastructure.resilience.executor import ResilientExecutor
from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.policy import RetryPolicy

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


class ResilienceService:
    """Class-based resilience service.

    This service:
    - Manages a registry of named circuit breakers
    - Builds executors wired to a breaker and an event channel
    - Exposes breaker stats for health reporting

    Usage:
        from infrastructure.configuration import settings
        from infrastructure.resilience import ResilienceService

        service = ResilienceService(settings)
        channel = EventChannel("notes")
        executor = service.create_executor("notes", channel=channel)
    """

    def __init__(self, settings: "Settings"):
        """Initialize resilience service.

        Args:
            settings: Settings instance providing retry and breaker defaults.
        """
        self._settings = settings
        self._circuit_breakers: Dict[str, CircuitBreaker] = {}
        self._retry_config = RetryConfig.from_settings(settings.retry)
        self._breaker_config = CircuitBreakerConfig.from_settings(
            settings.circuit_breaker
        )

    @property
    def retry_config(self) -> RetryConfig:
        """Default retry profile built from settings."""
        return self._retry_config

    @property
    def circuit_breaker_enabled(self) -> bool:
        return self._settings.circuit_breaker.enabled

    def create_circuit_breaker(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        channel: Optional[EventChannel] = None,
    ) -> CircuitBreaker:
        """Create and register a new circuit breaker.

        Args:
            name: Unique name for the circuit breaker
            config: Thresholds, defaults to the settings-derived config
            channel: Channel receiving circuit events

        Returns:
            CircuitBreaker instance

        Raises:
            ValueError: If circuit breaker with this name already exists
        """
        if name in self._circuit_breakers:
            raise ValueError(f"Circuit breaker '{name}' already exists")

        breaker_config = config or self._breaker_config
        cb = CircuitBreaker(name=name, config=breaker_config, channel=channel)
        self._circuit_breakers[name] = cb

        logger.info(
            "circuit_breaker_created",
            name=name,
            failure_threshold=breaker_config.failure_threshold,
            reset_timeout_seconds=breaker_config.reset_timeout,
        )

        return cb

    def get_circuit_breaker(self, name: str) -> Optional[CircuitBreaker]:
        return self._circuit_breakers.get(name)

    def get_or_create_circuit_breaker(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        channel: Optional[EventChannel] = None,
    ) -> CircuitBreaker:
        """Get existing circuit breaker or create if not found.

        ``config`` and ``channel`` are only used when creating.
        """
        existing = self.get_circuit_breaker(name)
        if existing:
            return existing
        return self.create_circuit_breaker(name, config=config, channel=channel)

    def create_executor(
        self,
        name: str,
        channel: Optional[EventChannel] = None,
        retry_config: Optional[RetryConfig] = None,
        breaker_config: Optional[CircuitBreakerConfig] = None,
        gate_each_attempt: bool = True,
    ) -> ResilientExecutor:
        """Build an executor whose breaker is registered under ``name``.

        When circuit breaking is disabled in settings the executor runs
        without a breaker.

        Args:
            name: Breaker name, typically the data source name
            channel: Channel shared by the executor and the breaker
            retry_config: Retry profile, defaults to the settings-derived one
            breaker_config: Breaker thresholds, defaults to settings
            gate_each_attempt: See ``ResilientExecutor``

        Returns:
            ResilientExecutor instance
        """
        channel = channel if channel is not None else EventChannel(name)
        breaker = None
        if self.circuit_breaker_enabled:
            breaker = self.get_or_create_circuit_breaker(
                name, config=breaker_config, channel=channel
            )

        return ResilientExecutor(
            retry_policy=RetryPolicy(retry_config or self._retry_config),
            circuit_breaker=breaker,
            channel=channel,
            gate_each_attempt=gate_each_attempt,
        )

    def get_all_circuit_breaker_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get statistics for all registered circuit breakers.

        Returns:
            Dict mapping circuit breaker name to stats dict
        """
        return {name: cb.get_stats() for name, cb in self._circuit_breakers.items()}

    def get_open_circuit_breakers(self) -> list[str]:
        """Get list of circuit breakers that are currently OPEN."""
        return [
            name
            for name, cb in self._circuit_breakers.items()
            if cb.state == CircuitState.OPEN
        ]

    def reset_circuit_breaker(self, name: str) -> None:
        """Manually reset a circuit breaker.

        Raises:
            KeyError: If circuit breaker not found
        """
        cb = self._circuit_breakers.get(name)
        if not cb:
            raise KeyError(f"Circuit breaker '{name}' not found")

        cb.reset()

    def reset_all(self) -> None:
        for cb in self._circuit_breakers.values():
            cb.reset()

    def list_circuit_breakers(self) -> list[str]:
        return list(self._circuit_breakers.keys())
