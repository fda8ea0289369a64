"""Infrastructure modules for the Ever client data layer.

Centralized infrastructure components:
- configuration: Settings management (settings, ApiSettings, RetrySettings)
- logging: Structured logging (get_module_logger, configure_logging)
- operations: Error taxonomy, operation results and error classification
- events: Lifecycle events and the EventChannel
- resilience: Retry policy, circuit breaker, executor and refresh coordination
- clients: HTTP client for the backend API
- cache: Local caching
"""

# Configuration
from infrastructure.configuration import settings

# Observability
from infrastructure.logging import get_module_logger

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "settings",
    "get_module_logger",
    "OperationResult",
    "OperationStatus",
]
