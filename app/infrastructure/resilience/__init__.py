"""Resilience patterns for outbound operations.

Retry policy, circuit breaker, the executor composing them and the
single-flight refresh coordinator.
"""

from infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from infrastructure.resilience.executor import ResilientExecutor
from infrastructure.resilience.refresh import RefreshCoordinator
from infrastructure.resilience.retry import RetryConfig, RetryPolicy
from infrastructure.resilience.service import ResilienceService

__all__ = [
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    # Retry
    "RetryConfig",
    "RetryPolicy",
    # Composition
    "ResilientExecutor",
    "RefreshCoordinator",
    "ResilienceService",
]
