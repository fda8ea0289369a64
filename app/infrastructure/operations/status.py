"""Operation status enumeration.

Coarse classification of an operation outcome, used by the retry policy
and by monitoring to decide how to react to a failure.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for classified operation outcomes.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable (connection failure, timeout, 5xx)
        PERMANENT_ERROR: Non-retryable (validation, conflict, other 4xx)
        UNAUTHORIZED: Credentials missing, expired or rejected
        NOT_FOUND: Resource does not exist
        CIRCUIT_OPEN: Rejected locally by an open circuit breaker
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CIRCUIT_OPEN = "circuit_open"
