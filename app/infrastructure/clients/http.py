"""Async HTTP client for the notes/tasks backend.

Wraps ``httpx.AsyncClient`` and converts every non-2xx response and every
transport failure into the typed exceptions of
``infrastructure.operations.errors``, so callers only deal with domain
errors and the retry policy can classify them.

Response envelope:
    Successful responses wrap their payload as ``{"data": ...}``; the
    client returns the unwrapped payload. Error responses carry a human
    readable ``message`` key.

Usage:
    from infrastructure.clients import ApiClient

    client = ApiClient(token_provider=lambda: auth.access_token)

    note = await client.get("/notes/n-1")
    await client.aclose()
"""

from typing import Any, Callable, Dict, Optional

import httpx

from infrastructure.configuration import settings
from infrastructure.logging import get_module_logger
from infrastructure.operations.classifiers import error_for_status
from infrastructure.operations.errors import (
    ConnectionFailedError,
    RequestTimeoutError,
    ValidationError,
)

logger = get_module_logger()

TokenProvider = Callable[[], Optional[str]]

DATA_KEY = "data"
MESSAGE_KEY = "message"


class ApiClient:
    """HTTP client for the backend REST API.

    Attributes:
        base_url: Versioned API root, e.g. http://localhost:3000/v1
        timeout: Per-request timeout in seconds

    Args:
        base_url: Defaults to ``settings.api.versioned_base_url``
        timeout: Defaults to ``settings.api.API_TIMEOUT_SECONDS``
        token_provider: Returns the current bearer token, or None
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or settings.api.versioned_base_url
        self.timeout = timeout if timeout is not None else settings.api.API_TIMEOUT_SECONDS
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=transport,
        )
        self._logger = logger.bind(base_url=self.base_url)

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        return await self.request("GET", path, params=params, token=token)

    async def post(
        self,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        return await self.request("POST", path, json_data=json_data, token=token)

    async def put(
        self,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        return await self.request("PUT", path, json_data=json_data, token=token)

    async def patch(
        self,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        return await self.request("PATCH", path, json_data=json_data, token=token)

    async def delete(self, path: str, token: Optional[str] = None) -> Any:
        return await self.request("DELETE", path, token=token)

    async def request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        """Send a request and return the unwrapped ``data`` payload.

        Args:
            method: HTTP method
            path: Path relative to base_url
            json_data: JSON request body
            params: Query parameters; None values are dropped
            token: Bearer token overriding the token provider

        Returns:
            The ``data`` member of the response body, or None for empty
            responses such as 204

        Raises:
            ValidationError, UnauthorizedError, NotFoundError, ConflictError,
            PermanentDomainError: For 4xx responses
            ServiceUnavailableError: For 5xx responses
            RequestTimeoutError: When the request timed out
            ConnectionFailedError: For other transport failures
        """
        log = self._logger.bind(method=method, path=path)
        headers = self._auth_headers(token)
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        log.debug("api_request")
        try:
            response = await self._client.request(
                method,
                path,
                json=json_data,
                params=params or None,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            log.warning("api_request_timeout", timeout=self.timeout, error=str(e))
            raise RequestTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"method": method, "path": path},
            ) from e
        except httpx.TransportError as e:
            log.warning("api_connection_error", error=str(e))
            raise ConnectionFailedError(
                f"Connection failed: {e}",
                details={"method": method, "path": path},
            ) from e

        log = log.bind(status_code=response.status_code)
        body = self._parse_body(response, log)

        if response.is_success:
            log.debug("api_request_success")
            if body is None:
                return None
            if not isinstance(body, dict) or DATA_KEY not in body:
                raise ValidationError(
                    "Invalid response format from server",
                    details={"method": method, "path": path},
                )
            return body[DATA_KEY]

        message = self._extract_error_message(body, response)
        if response.status_code >= 500:
            log.error("api_server_error", error=message)
        else:
            log.warning("api_client_error", error=message)
        raise error_for_status(response.status_code, message)

    def _auth_headers(self, token: Optional[str]) -> Dict[str, str]:
        token = token or (self._token_provider() if self._token_provider else None)
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _parse_body(response: httpx.Response, log) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            log.warning("non_json_response", content=response.text[:200])
            return None

    @staticmethod
    def _extract_error_message(body: Any, response: httpx.Response) -> str:
        if isinstance(body, dict) and body.get(MESSAGE_KEY):
            return str(body[MESSAGE_KEY])
        return response.text[:200] or f"HTTP {response.status_code}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
