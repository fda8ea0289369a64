"""Authentication data source.

Registers users, exchanges the user secret for access tokens and keeps
credentials in the local store. ``execute_with_refresh`` lets other data
sources recover from an expired token: the first caller that sees an
``UnauthorizedError`` refreshes, concurrent callers share that refresh,
and each caller then re-invokes its own request once.
"""

from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, TypeVar

import pydantic

from infrastructure.cache import InMemoryCache, LocalCache
from infrastructure.clients import ApiClient
from infrastructure.configuration import settings
from infrastructure.events import EventChannel
from infrastructure.logging import get_module_logger
from infrastructure.operations.errors import UnauthorizedError, ValidationError
from infrastructure.resilience import (
    RefreshCoordinator,
    ResilienceService,
    ResilientExecutor,
)
from modules.auth.models import AuthCredentials, User, utcnow

logger = get_module_logger()

T = TypeVar("T")

CREDENTIALS_KEY = "auth:credentials"


class AuthDataSource:
    """Resilient access to ``/auth`` endpoints plus credential management.

    Args:
        client: HTTP client for the backend
        executor: Pre-built executor; built from settings when omitted
        store: Credential store; a private in-memory cache when omitted
        coordinator: Refresh coordinator for this credential scope
        resilience: Service used to build the executor when omitted
        clock: Returns the current aware UTC datetime
    """

    resource = "auth"

    REGISTER = "auth_register"
    OBTAIN_TOKEN = "auth_obtain_token"
    GET_CURRENT_USER = "auth_get_current_user"
    SIGN_OUT = "auth_sign_out"
    REFRESH_TOKEN = "auth_refresh_token"

    def __init__(
        self,
        client: ApiClient,
        executor: Optional[ResilientExecutor] = None,
        store: Optional[LocalCache] = None,
        coordinator: Optional[RefreshCoordinator] = None,
        resilience: Optional[ResilienceService] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.store = store if store is not None else InMemoryCache()
        self.coordinator = coordinator or RefreshCoordinator(self.resource)
        if executor is None:
            resilience = resilience or ResilienceService(settings)
            executor = resilience.create_executor(
                self.resource, channel=EventChannel(self.resource)
            )
        self.executor = executor
        self._clock = clock
        self._credentials = self.store.get(CREDENTIALS_KEY) or AuthCredentials()

    @property
    def events(self) -> EventChannel:
        return self.executor.channel

    @property
    def credentials(self) -> AuthCredentials:
        return self._credentials

    @property
    def access_token(self) -> Optional[str]:
        return self._credentials.access_token

    @property
    def user_secret(self) -> Optional[str]:
        return self._credentials.user_secret

    @property
    def is_refreshing(self) -> bool:
        return self.coordinator.in_flight

    @property
    def token_lifetime(self) -> timedelta:
        return timedelta(seconds=settings.api.TOKEN_LIFETIME_SECONDS)

    @property
    def refresh_threshold(self) -> timedelta:
        return timedelta(seconds=settings.api.TOKEN_REFRESH_THRESHOLD_SECONDS)

    async def initialize(self) -> None:
        """Load stored credentials and refresh the token if it is about to expire."""
        self._credentials = self.store.get(CREDENTIALS_KEY) or AuthCredentials()
        await self.ensure_valid_token()

    async def ensure_valid_token(self) -> Optional[str]:
        """Refresh the access token when it is missing or close to expiry.

        Does nothing without a stored user secret.
        """
        creds = self._credentials
        if creds.user_secret is None:
            return creds.access_token
        if creds.access_token and not creds.is_expired_or_expiring(
            self.refresh_threshold, now=self._clock()
        ):
            return creds.access_token
        logger.info("auth_token_expiring", expires_at=creds.token_expires_at)
        return await self.coordinator.run_exclusive(self.refresh_token)

    async def register(self, username: str) -> User:
        """Register a user and store the user secret it was issued."""
        if not isinstance(username, str) or not username.strip():
            raise ValidationError("Username must not be empty", operation=self.REGISTER)

        async def action() -> User:
            data = await self.client.post(
                "/auth/register", json_data={"username": username.strip()}
            )
            user = self._parse_user(data)
            user_secret = data.get("user_secret")
            if user_secret:
                self._save(
                    self._credentials.model_copy(update={"user_secret": user_secret})
                )
            return user

        user = await self.executor.execute(self.REGISTER, action)
        logger.info("auth_user_registered", user_id=user.id)
        return user

    async def obtain_token(self, user_secret: str) -> str:
        """Exchange the user secret for an access token and store both."""
        if not isinstance(user_secret, str) or not user_secret.strip():
            raise ValidationError("User secret must not be empty", operation=self.OBTAIN_TOKEN)
        return await self._request_token(user_secret, self.OBTAIN_TOKEN)

    async def refresh_token(self) -> str:
        """Obtain a new token with the stored user secret.

        Raises:
            UnauthorizedError: No user secret is stored
        """
        user_secret = self._credentials.user_secret
        if not user_secret:
            raise UnauthorizedError(
                "No user secret available to refresh the token",
                operation=self.REFRESH_TOKEN,
            )
        return await self._request_token(user_secret, self.REFRESH_TOKEN)

    async def get_current_user(self) -> User:
        async def action() -> User:
            token = self.access_token
            if not token:
                raise UnauthorizedError(
                    "No access token available", operation=self.GET_CURRENT_USER
                )
            data = await self.client.get("/auth/me", token=token)
            return self._parse_user(data)

        async def run() -> User:
            return await self.executor.execute(self.GET_CURRENT_USER, action)

        return await self.execute_with_refresh(run)

    async def sign_out(self) -> None:
        """Forget every stored credential."""

        async def action() -> None:
            self.store.remove(CREDENTIALS_KEY)
            self._credentials = AuthCredentials()

        await self.executor.execute(self.SIGN_OUT, action)
        logger.info("auth_signed_out")

    async def execute_with_refresh(self, api_call: Callable[[], Awaitable[T]]) -> T:
        """Run ``api_call``, refreshing the token once if it is rejected.

        If the token changed while the call was in flight, another caller
        already refreshed and the call is re-invoked without refreshing.
        A second rejection after the refresh is raised to the caller.

        Args:
            api_call: Zero-argument coroutine function reading the current
                token when invoked

        Returns:
            The result of api_call
        """
        token_before = self.access_token
        try:
            return await api_call()
        except UnauthorizedError as e:
            if self.access_token != token_before:
                logger.debug("auth_token_already_refreshed")
                return await api_call()
            logger.info("auth_token_rejected", error=str(e))
            await self.coordinator.run_exclusive(self.refresh_token)
            return await api_call()

    async def _request_token(self, user_secret: str, operation_name: str) -> str:
        async def action() -> str:
            data = await self.client.post(
                "/auth/token", json_data={"user_secret": user_secret}
            )
            token = data.get("access_token") if isinstance(data, dict) else None
            if not token:
                raise ValidationError(
                    "Token response did not contain an access token",
                    operation=operation_name,
                )
            return token

        token = await self.executor.execute(operation_name, action)
        expires_at = self._clock() + self.token_lifetime
        self._save(
            self._credentials.model_copy(update={"user_secret": user_secret}).with_token(
                token, expires_at
            )
        )
        logger.info("auth_token_obtained", operation=operation_name, expires_at=expires_at)
        return token

    def _save(self, credentials: AuthCredentials) -> None:
        self._credentials = credentials
        self.store.set(CREDENTIALS_KEY, credentials)

    def _parse_user(self, data) -> User:
        try:
            return User.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(
                "Invalid user payload from server", operation=self.resource
            ) from e
