"""Outbound clients."""

from infrastructure.clients.http import ApiClient, TokenProvider

__all__ = ["ApiClient", "TokenProvider"]
