"""Operation-scoped logging context.

Binds a correlation id and operation metadata to every log entry emitted
while a data source call is running. ``RestDataSource`` enters the context
around each call; nested blocks reuse the outer correlation id and restore
the outer values on exit.

Usage:
    from infrastructure.logging import bind_operation_context

    with bind_operation_context(operation="notes_get", resource_id="n-1"):
        logger.info("fetching_note")
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_operation_context(
    correlation_id: Optional[str] = None,
    operation: Optional[str] = None,
    resource_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[str, None, None]:
    """Bind operation context to all logs within the block.

    Args:
        correlation_id: Identifier shared by related log entries. Taken from
            an enclosing block, or generated, when not provided.
        operation: Logical operation name, e.g. "tasks_create".
        resource_id: Identifier of the entity being worked on.
        **extra_context: Additional key-value pairs to include.

    Yields:
        The correlation id in effect for the block.
    """
    previous = structlog.contextvars.get_contextvars()
    context: dict[str, Any] = {
        "correlation_id": correlation_id
        or previous.get("correlation_id")
        or str(uuid.uuid4())
    }
    if operation is not None:
        context["operation"] = operation
    if resource_id is not None:
        context["resource_id"] = resource_id
    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield context["correlation_id"]
    finally:
        structlog.contextvars.unbind_contextvars(
            *(key for key in context if key not in previous)
        )
        restored = {key: previous[key] for key in context if key in previous}
        if restored:
            structlog.contextvars.bind_contextvars(**restored)


def get_correlation_id() -> Optional[str]:
    """Return the correlation id bound to the current context, if any."""
    return structlog.contextvars.get_contextvars().get("correlation_id")


def set_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_operation_context() -> None:
    structlog.contextvars.clear_contextvars()
