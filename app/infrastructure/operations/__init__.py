"""Operation result types, status enums and the error taxonomy.

Standardized classification of operation outcomes shared by the retry
policy, the circuit breaker and the data sources.
"""

from infrastructure.operations.classifiers import (
    classify_exception,
    classify_http_status,
    error_for_status,
)
from infrastructure.operations.errors import (
    CircuitOpenError,
    ConflictError,
    ConnectionFailedError,
    NetworkError,
    NotFoundError,
    OperationCancelledError,
    OperationError,
    PermanentDomainError,
    RequestTimeoutError,
    RetryExhaustedError,
    ServiceUnavailableError,
    TransientNetworkError,
    UnauthorizedError,
    ValidationError,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_http_status",
    "classify_exception",
    "error_for_status",
    "OperationError",
    "ValidationError",
    "PermanentDomainError",
    "NotFoundError",
    "ConflictError",
    "UnauthorizedError",
    "NetworkError",
    "TransientNetworkError",
    "ServiceUnavailableError",
    "RequestTimeoutError",
    "ConnectionFailedError",
    "RetryExhaustedError",
    "CircuitOpenError",
    "OperationCancelledError",
]
