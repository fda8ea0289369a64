"""Error classifiers for backend responses and transport exceptions.

Centralizes the mapping from HTTP status codes and raised exceptions to
``OperationResult`` / ``OperationStatus`` and to the typed exceptions in
``infrastructure.operations.errors``.

Key Functions:
- classify_http_status(): HTTP status code → OperationResult
- classify_exception(): any exception → OperationResult
- error_for_status(): HTTP status code → typed OperationError to raise

Usage:
    from infrastructure.operations.classifiers import error_for_status

    if response.status_code >= 400:
        raise error_for_status(response.status_code, message)
"""

import asyncio
from typing import Optional

import httpx

from infrastructure.operations.errors import (
    CircuitOpenError,
    ConflictError,
    NotFoundError,
    OperationCancelledError,
    OperationError,
    PermanentDomainError,
    RetryExhaustedError,
    ServiceUnavailableError,
    TransientNetworkError,
    UnauthorizedError,
    ValidationError,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus


def classify_http_status(status_code: int) -> OperationResult:
    """Classify an HTTP status code into OperationResult.

    Status Code Mapping:
    - 2xx: SUCCESS
    - 401/403: UNAUTHORIZED
    - 404: NOT_FOUND
    - 5xx: TRANSIENT_ERROR
    - Other: PERMANENT_ERROR

    Args:
        status_code: HTTP status code returned by the backend

    Returns:
        OperationResult with matching status and error_code
    """
    if 200 <= status_code < 300:
        return OperationResult.success(message=f"HTTP {status_code}")

    if status_code in (401, 403):
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            f"Backend rejected credentials ({status_code})",
            error_code="UNAUTHORIZED",
        )

    if status_code == 404:
        return OperationResult.error(
            OperationStatus.NOT_FOUND,
            "Resource not found",
            error_code="NOT_FOUND",
        )

    if 500 <= status_code < 600:
        return OperationResult.transient_error(
            f"Backend server error ({status_code})",
            error_code="SERVER_ERROR",
        )

    return OperationResult.permanent_error(
        f"Backend client error ({status_code})",
        error_code="HTTP_ERROR",
    )


def classify_exception(exc: BaseException) -> OperationResult:
    """Classify an exception raised by a data layer call.

    Typed operation errors are classified by family; httpx and builtin
    transport exceptions are transient; anything unknown is permanent.

    Args:
        exc: Exception raised by an operation

    Returns:
        OperationResult describing the failure
    """
    match exc:
        case CircuitOpenError():
            return OperationResult.error(
                OperationStatus.CIRCUIT_OPEN,
                str(exc),
                error_code="CIRCUIT_OPEN",
                retry_after=exc.retry_in,
            )
        case OperationCancelledError() | asyncio.CancelledError():
            return OperationResult.permanent_error(str(exc), error_code="CANCELLED")
        case UnauthorizedError():
            return OperationResult.error(
                OperationStatus.UNAUTHORIZED, str(exc), error_code="UNAUTHORIZED"
            )
        case NotFoundError():
            return OperationResult.error(
                OperationStatus.NOT_FOUND, str(exc), error_code="NOT_FOUND"
            )
        case ValidationError():
            return OperationResult.permanent_error(
                str(exc), error_code="VALIDATION_ERROR"
            )
        case PermanentDomainError():
            return OperationResult.permanent_error(str(exc), error_code="DOMAIN_ERROR")
        case RetryExhaustedError():
            return OperationResult.transient_error(
                str(exc), error_code="RETRY_EXHAUSTED"
            )
        case TransientNetworkError():
            return OperationResult.transient_error(str(exc), error_code="NETWORK_ERROR")
        case httpx.HTTPStatusError():
            return classify_http_status(exc.response.status_code)
        case httpx.TransportError() | TimeoutError() | ConnectionError():
            return OperationResult.transient_error(
                f"Connection error: {type(exc).__name__}: {exc}",
                error_code="CONNECTION_ERROR",
            )
        case _:
            return OperationResult.permanent_error(
                f"Unclassified error: {type(exc).__name__}: {exc}",
                error_code="UNKNOWN_ERROR",
            )


def error_for_status(
    status_code: int,
    message: Optional[str] = None,
    operation: Optional[str] = None,
) -> OperationError:
    """Build the typed exception for a non-2xx backend response.

    Mapping:
    - 400/422: ValidationError
    - 401/403: UnauthorizedError
    - 404: NotFoundError
    - 409: ConflictError
    - 5xx: ServiceUnavailableError
    - other 4xx: PermanentDomainError

    Args:
        status_code: HTTP status code
        message: Error message from the response body, if any
        operation: Logical operation name for context

    Returns:
        The exception instance; callers raise it.
    """
    text = message or f"HTTP {status_code}"
    details = {"status_code": status_code}

    match status_code:
        case 400 | 422:
            return ValidationError(text, operation=operation, details=details)
        case 401 | 403:
            return UnauthorizedError(text, status_code=status_code, operation=operation)
        case 404:
            return NotFoundError(text, status_code=status_code, operation=operation)
        case 409:
            return ConflictError(text, status_code=status_code, operation=operation)
        case code if 500 <= code < 600:
            return ServiceUnavailableError(
                text, status_code=status_code, operation=operation
            )
        case _:
            return PermanentDomainError(
                text, status_code=status_code, operation=operation
            )
