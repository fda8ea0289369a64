"""User and credential models."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    id: str
    username: str
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class AuthCredentials(BaseModel):
    """Locally persisted credentials.

    Attributes:
        user_secret: Long-lived secret handed out at registration, used to
            obtain access tokens
        access_token: Current bearer token
        token_expires_at: Estimated expiry of access_token
    """

    user_secret: Optional[str] = Field(default=None, repr=False)
    access_token: Optional[str] = Field(default=None, repr=False)
    token_expires_at: Optional[datetime] = None

    def is_expired_or_expiring(
        self, threshold: timedelta, now: Optional[datetime] = None
    ) -> bool:
        """True if there is no expiry or it falls within ``threshold`` of now."""
        if self.token_expires_at is None:
            return True
        return self.token_expires_at < (now or utcnow()) + threshold

    def with_token(self, access_token: str, expires_at: datetime) -> "AuthCredentials":
        return self.model_copy(
            update={"access_token": access_token, "token_expires_at": expires_at}
        )
