"""Circuit breaker infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class CircuitBreakerSettings(InfrastructureSettings):
    """Circuit breaker configuration shared by every data source.

    Each data source still owns its own breaker instance; these values only
    seed the configuration.

    Environment Variables:
        CIRCUIT_BREAKER_ENABLED: Gate calls through a breaker (default: True)
        CIRCUIT_BREAKER_FAILURE_THRESHOLD: Consecutive failures before opening (default: 5)
        CIRCUIT_BREAKER_RESET_TIMEOUT_SECONDS: Seconds in OPEN before a trial call (default: 30)
        CIRCUIT_BREAKER_HALF_OPEN_MAX_ATTEMPTS: Trial calls allowed in HALF_OPEN (default: 3)
    """

    enabled: bool = Field(
        default=True,
        alias="CIRCUIT_BREAKER_ENABLED",
        description="Gate outbound calls through a circuit breaker",
    )
    failure_threshold: int = Field(
        default=5,
        alias="CIRCUIT_BREAKER_FAILURE_THRESHOLD",
        description="Consecutive failures before the circuit opens",
    )
    reset_timeout_seconds: float = Field(
        default=30.0,
        alias="CIRCUIT_BREAKER_RESET_TIMEOUT_SECONDS",
        description="Seconds to stay OPEN before allowing a trial call",
    )
    half_open_max_attempts: int = Field(
        default=3,
        alias="CIRCUIT_BREAKER_HALF_OPEN_MAX_ATTEMPTS",
        description="Trial calls allowed while HALF_OPEN",
    )
