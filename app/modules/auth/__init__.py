"""Authentication module."""

from modules.auth.datasource import AuthDataSource
from modules.auth.models import AuthCredentials, User

__all__ = ["AuthCredentials", "AuthDataSource", "User"]
