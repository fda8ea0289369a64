"""Retry policy configuration.

Defines the exponential backoff parameters and the named profiles used by
the data sources.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infrastructure.configuration import RetrySettings


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Total attempts per operation, first one included
        initial_delay: Delay in seconds before the first retry
        max_delay: Cap in seconds applied to every computed delay
        backoff_factor: Multiplier between consecutive delays
        jitter: Randomise delays within [0, computed delay]

    Example:
        # Default profile: 1s, 2s between three attempts
        config = RetryConfig()

        # Heavier profile for flaky networks
        config = RetryConfig.network()
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_factor: float = 2.0
    jitter: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")

    @classmethod
    def from_settings(cls, retry_settings: "RetrySettings") -> "RetryConfig":
        return cls(
            max_attempts=retry_settings.max_attempts,
            initial_delay=retry_settings.initial_delay_seconds,
            max_delay=retry_settings.max_delay_seconds,
            backoff_factor=retry_settings.backoff_factor,
            jitter=retry_settings.jitter,
        )

    @classmethod
    def network(cls) -> "RetryConfig":
        """Profile for operations expected to hit slow or flaky networks."""
        return cls(max_attempts=5, initial_delay=1.0, max_delay=30.0)

    @classmethod
    def lightweight(cls) -> "RetryConfig":
        """Profile for cheap calls where failing fast matters more."""
        return cls(max_attempts=2, initial_delay=0.5, max_delay=2.0)
