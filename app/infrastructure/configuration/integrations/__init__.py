"""Integration settings __init__ - exports all integration settings."""

from infrastructure.configuration.integrations.api import ApiSettings

__all__ = [
    "ApiSettings",
]
