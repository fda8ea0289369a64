"""Retry policy infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class RetrySettings(InfrastructureSettings):
    """Default retry profile for outbound API operations.

    Environment Variables:
        RETRY_MAX_ATTEMPTS: Total attempts per operation, first one included (default: 3)
        RETRY_INITIAL_DELAY_SECONDS: Delay before the first retry (default: 1.0)
        RETRY_MAX_DELAY_SECONDS: Cap applied to every computed delay (default: 10.0)
        RETRY_BACKOFF_FACTOR: Multiplier between consecutive delays (default: 2.0)
        RETRY_JITTER: Randomise delays below the computed value (default: False)

    Exponential Backoff:
        Delay calculation: min(initial_delay * (factor ^ (attempt - 1)), max_delay)

        Example with defaults (initial=1s, factor=2, max=10s):
            Attempt 1: 1s
            Attempt 2: 2s
            Attempt 3: 4s
            Attempt 4: 8s
            Attempt 5: 10s (capped)

    Example:
        ```python
        from infrastructure.configuration import settings

        config = RetryConfig.from_settings(settings.retry)
        ```
    """

    max_attempts: int = Field(
        default=3,
        alias="RETRY_MAX_ATTEMPTS",
        description="Total attempts per operation, including the first",
    )
    initial_delay_seconds: float = Field(
        default=1.0,
        alias="RETRY_INITIAL_DELAY_SECONDS",
        description="Delay before the first retry (seconds)",
    )
    max_delay_seconds: float = Field(
        default=10.0,
        alias="RETRY_MAX_DELAY_SECONDS",
        description="Upper bound for any backoff delay (seconds)",
    )
    backoff_factor: float = Field(
        default=2.0,
        alias="RETRY_BACKOFF_FACTOR",
        description="Multiplier applied to the delay after each attempt",
    )
    jitter: bool = Field(
        default=False,
        alias="RETRY_JITTER",
        description="Randomise backoff delays below the computed value",
    )
