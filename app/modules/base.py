"""Base REST resource data source.

Every data source owns one ``ResilientExecutor`` (and through it one
circuit breaker and one ``EventChannel``). Public methods validate their
input, hand a zero-argument coroutine function to the executor and keep
the local cache in sync with what the backend returned.

When an ``AuthDataSource`` is attached, calls carry its bearer token and
an ``UnauthorizedError`` triggers a single shared token refresh followed
by one re-invocation of the call.
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    Generic,
    List,
    Optional,
    Type,
    TypeVar,
)

import pydantic
from pydantic import BaseModel

from infrastructure.cache import InMemoryCache, LocalCache
from infrastructure.clients import ApiClient
from infrastructure.configuration import settings
from infrastructure.events import EventChannel
from infrastructure.logging import bind_operation_context, get_module_logger
from infrastructure.operations.errors import NotFoundError, ValidationError
from infrastructure.resilience import (
    ResilienceService,
    ResilientExecutor,
    RetryConfig,
)

if TYPE_CHECKING:
    from modules.auth.datasource import AuthDataSource

logger = get_module_logger()

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

ITEMS_KEY = "items"


class RestDataSource(Generic[M]):
    """CRUD over one REST collection, executed resiliently.

    Subclasses set ``resource`` (used for operation names, the breaker
    name and cache keys), ``path`` and ``model``.

    Args:
        client: HTTP client for the backend
        executor: Pre-built executor; built from settings when omitted
        cache: Local cache; a private in-memory cache when omitted
        auth: Auth data source supplying tokens and refresh
        resilience: Service used to build the executor when omitted
        retry_config: Retry profile for the built executor
    """

    resource: ClassVar[str] = ""
    path: ClassVar[str] = ""
    model: ClassVar[Type[BaseModel]]

    def __init__(
        self,
        client: ApiClient,
        executor: Optional[ResilientExecutor] = None,
        cache: Optional[LocalCache] = None,
        auth: Optional["AuthDataSource"] = None,
        resilience: Optional[ResilienceService] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.client = client
        self.cache = cache if cache is not None else InMemoryCache()
        self.auth = auth
        if executor is None:
            resilience = resilience or ResilienceService(settings)
            executor = resilience.create_executor(
                self.resource,
                channel=EventChannel(self.resource),
                retry_config=retry_config,
            )
        self.executor = executor
        self._log = logger.bind(resource=self.resource)

    @property
    def events(self) -> EventChannel:
        """Channel carrying lifecycle events of this data source."""
        return self.executor.channel

    def operation_name(self, action: str) -> str:
        return f"{self.resource}_{action}"

    def cache_key(self, entity_id: str) -> str:
        return f"{self.resource}:{entity_id}"

    @property
    def list_cache_key(self) -> str:
        return f"{self.resource}:list"

    async def create(self, payload: Dict[str, Any]) -> M:
        """Create an entity from ``payload`` and cache it."""
        self.validate_payload(payload)

        async def action() -> M:
            data = await self.client.post(self.path, json_data=payload, token=self._token())
            return self._parse(data)

        entity = await self._execute(self.operation_name("create"), action)
        self._store(entity)
        self.cache.remove(self.list_cache_key)
        return entity

    async def get(self, entity_id: str) -> M:
        """Fetch an entity by id, refreshing its cache entry.

        Raises:
            NotFoundError: The entity does not exist; its cache entry is dropped
        """
        self._require_id(entity_id)

        async def action() -> M:
            data = await self.client.get(f"{self.path}/{entity_id}", token=self._token())
            return self._parse(data)

        try:
            entity = await self._execute(self.operation_name("read"), action)
        except NotFoundError:
            self.cache.remove(self.cache_key(entity_id))
            raise
        self._store(entity)
        return entity

    async def update(self, entity_id: str, payload: Dict[str, Any]) -> M:
        self._require_id(entity_id)
        self.validate_payload(payload)

        async def action() -> M:
            data = await self.client.put(
                f"{self.path}/{entity_id}", json_data=payload, token=self._token()
            )
            return self._parse(data)

        entity = await self._execute(self.operation_name("update"), action)
        self._store(entity)
        self.cache.remove(self.list_cache_key)
        return entity

    async def delete(self, entity_id: str) -> None:
        self._require_id(entity_id)

        async def action() -> None:
            await self.client.delete(f"{self.path}/{entity_id}", token=self._token())

        await self._execute(self.operation_name("delete"), action)
        self.cache.remove(self.cache_key(entity_id))
        self.cache.remove(self.list_cache_key)

    async def list(self, filters: Optional[Dict[str, Any]] = None) -> List[M]:
        """List entities, optionally filtered by query parameters.

        Unfiltered results are cached as a whole; every entity is cached
        individually.
        """

        async def action() -> List[M]:
            data = await self.client.get(self.path, params=filters, token=self._token())
            return self._parse_list(data)

        entities = await self._execute(self.operation_name("list"), action)
        for entity in entities:
            self._store(entity)
        if not filters:
            self.cache.set(self.list_cache_key, entities)
        return entities

    def get_cached(self, entity_id: str) -> Optional[M]:
        return self.cache.get(self.cache_key(entity_id))

    def get_cached_list(self) -> Optional[List[M]]:
        return self.cache.get(self.list_cache_key)

    def validate_payload(self, payload: Dict[str, Any]) -> None:
        """Reject malformed payloads before any network call.

        Subclasses extend this with resource-specific rules.
        """
        if not isinstance(payload, dict) or not payload:
            raise ValidationError(
                f"{self.resource} payload must be a non-empty mapping",
                operation=self.resource,
            )

    def dispose(self) -> None:
        self.events.dispose()

    async def _execute(self, operation_name: str, action: Callable[[], Awaitable[T]]) -> T:
        async def run() -> T:
            return await self.executor.execute(operation_name, action)

        with bind_operation_context(operation=operation_name, resource=self.resource):
            if self.auth is None:
                return await run()
            return await self.auth.execute_with_refresh(run)

    def _token(self) -> Optional[str]:
        return self.auth.access_token if self.auth is not None else None

    def _store(self, entity: M) -> None:
        self.cache.set(self.cache_key(str(entity.id)), entity)

    def _require_id(self, entity_id: str) -> None:
        if not isinstance(entity_id, str) or not entity_id.strip():
            raise ValidationError(
                f"{self.resource} id must be a non-empty string",
                operation=self.resource,
            )

    def _parse(self, data: Any) -> M:
        try:
            return self.model.model_validate(data)
        except pydantic.ValidationError as e:
            self._log.warning("invalid_response_payload", error=str(e))
            raise ValidationError(
                f"Invalid {self.resource} payload from server",
                operation=self.resource,
                details={"errors": e.errors()},
            ) from e

    def _parse_list(self, data: Any) -> List[M]:
        # Collections come as {"items": [...]}, search results as a bare list
        if isinstance(data, dict):
            data = data.get(ITEMS_KEY)
        if not isinstance(data, list):
            raise ValidationError(
                f"Invalid {self.resource} list payload from server",
                operation=self.resource,
            )
        return [self._parse(item) for item in data]
