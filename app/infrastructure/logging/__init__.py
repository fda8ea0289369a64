"""Structured logging for the data layer.

Public API:
    - configure_logging(): Initialize structlog and stdlib logging
    - get_logger(): Logger bound to a name
    - get_module_logger(): Logger bound to the calling module
    - bind_operation_context(): Context manager adding correlation/operation fields
    - get_correlation_id() / set_correlation_id() / clear_operation_context()

Processors:
    - mask_sensitive_data(), truncate_large_values(), add_environment_info()
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_logger,
    get_module_logger,
)
from infrastructure.logging.context import (
    bind_operation_context,
    get_correlation_id,
    set_correlation_id,
    clear_operation_context,
)
from infrastructure.logging.formatters import (
    mask_sensitive_data,
    truncate_large_values,
    add_environment_info,
    SENSITIVE_PATTERNS,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_module_logger",
    "bind_operation_context",
    "get_correlation_id",
    "set_correlation_id",
    "clear_operation_context",
    "mask_sensitive_data",
    "truncate_large_values",
    "add_environment_info",
    "SENSITIVE_PATTERNS",
]
