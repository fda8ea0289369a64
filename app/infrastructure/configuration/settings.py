"""Ever client configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Integration settings
from infrastructure.configuration.integrations import ApiSettings

# Infrastructure settings
from infrastructure.configuration.infrastructure import (
    CircuitBreakerSettings,
    RetrySettings,
)


class Settings(BaseSettings):
    """Ever client configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object.
    Settings are organized by concern:

    - **Integrations**: Backend REST API connection and token lifetimes
    - **Infrastructure**: Retry and circuit breaker defaults

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, production)
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for build tracking

    Example:
        ```python
        from infrastructure.configuration import settings

        base_url = settings.api.versioned_base_url

        if settings.circuit_breaker.enabled:
            threshold = settings.circuit_breaker.failure_threshold

        if settings.is_production:
            # Production-specific logic...
        ```
    """

    # Application-level settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    api: ApiSettings

    # Infrastructure settings
    retry: RetrySettings
    circuit_breaker: CircuitBreakerSettings

    @property
    def is_production(self) -> bool:
        """Check if the client is running in production.

        Returns:
            True if ENVIRONMENT is "production", False otherwise.
        """
        return self.ENVIRONMENT.lower() == "production"

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            # Integrations
            "api": ApiSettings,
            # Infrastructure
            "retry": RetrySettings,
            "circuit_breaker": CircuitBreakerSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create the singleton settings instance
settings = Settings()
