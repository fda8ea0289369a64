"""Exception hierarchy for data layer operations.

Three families reach callers and are distinguished by type:

- ``ValidationError`` / ``PermanentDomainError``: the request itself is
  wrong. Never retried.
- ``NetworkError``: the dependency could not be reached or failed
  transiently. Retried by the executor; surfaces as ``RetryExhaustedError``
  once the attempt budget is spent.
- ``CircuitOpenError``: the call was rejected locally without touching the
  network.

Example:
    try:
        note = await notes.get_note("n-1")
    except NotFoundError:
        ...
    except NetworkError as e:
        logger.warning("notes_unreachable", error=str(e))
"""

from typing import Any, Dict, Optional


class OperationError(Exception):
    """Base exception for all data layer operation errors.

    Attributes:
        message: Human-friendly description
        operation: Logical operation name, when known
        details: Extra context for logs
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.details = details or {}


class ValidationError(OperationError):
    """Raised when input is malformed. Checked before any network call."""

    pass


class PermanentDomainError(OperationError):
    """Raised when the backend rejects a well-formed request.

    Attributes:
        status_code: HTTP status returned by the backend, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, operation=operation, details=details)
        self.status_code = status_code


class NotFoundError(PermanentDomainError):
    pass


class ConflictError(PermanentDomainError):
    pass


class UnauthorizedError(PermanentDomainError):
    """Raised for 401/403. The auth data source reacts by refreshing."""

    pass


class NetworkError(OperationError):
    """Base for failures reaching the backend."""

    pass


class TransientNetworkError(NetworkError):
    """A failure that may succeed on retry.

    Attributes:
        status_code: HTTP status for server errors, None for transport failures
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, operation=operation, details=details)
        self.status_code = status_code


class ServiceUnavailableError(TransientNetworkError):
    pass


class RequestTimeoutError(TransientNetworkError):
    pass


class ConnectionFailedError(TransientNetworkError):
    pass


class RetryExhaustedError(NetworkError):
    """Raised when a retryable failure persisted through every attempt.

    Attributes:
        attempts: Number of attempts made
        last_error: The error raised by the final attempt
    """

    def __init__(
        self,
        operation: str,
        attempts: int,
        last_error: BaseException,
    ):
        super().__init__(
            f"Operation '{operation}' failed after {attempts} attempt(s): {last_error}",
            operation=operation,
        )
        self.attempts = attempts
        self.last_error = last_error


class CircuitOpenError(OperationError):
    """Raised when a circuit breaker rejects a call.

    Attributes:
        circuit_name: Name of the rejecting breaker
        retry_in: Seconds until the breaker admits a trial call, 0 if the
            half-open trial budget is exhausted
    """

    def __init__(self, circuit_name: str, retry_in: float = 0.0):
        super().__init__(
            f"Circuit breaker '{circuit_name}' is open. Retry in {retry_in:.1f}s",
            details={"circuit_name": circuit_name, "retry_in": retry_in},
        )
        self.circuit_name = circuit_name
        self.retry_in = retry_in


class OperationCancelledError(OperationError):
    """Raised when a caller cancels an operation before it completes."""

    pass
