"""Infrastructure configuration module - public API.

This module provides centralized configuration management for the Ever
client using Pydantic BaseSettings with domain-based organization.

Exports:
    settings: Singleton Settings instance (main configuration object)
    Settings: Main settings class (for testing/overrides)
    ApiSettings: Backend API settings class
    RetrySettings: Retry profile settings class
    CircuitBreakerSettings: Circuit breaker settings class

Example:
    ```python
    from infrastructure.configuration import settings

    base_url = settings.api.versioned_base_url
    max_attempts = settings.retry.max_attempts

    if settings.is_production:
        # Production-specific logic...
    ```
"""

from infrastructure.configuration.settings import Settings, settings
from infrastructure.configuration.integrations import ApiSettings
from infrastructure.configuration.infrastructure import (
    CircuitBreakerSettings,
    RetrySettings,
)

__all__ = [
    "settings",
    "Settings",
    "ApiSettings",
    "RetrySettings",
    "CircuitBreakerSettings",
]
