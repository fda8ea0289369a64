"""Unit tests for lifecycle event models."""

import dataclasses
from datetime import datetime
from uuid import UUID

import pytest

from infrastructure.events import (
    CircuitClosed,
    CircuitHalfOpened,
    CircuitOpened,
    CircuitRejected,
    OperationFailure,
    OperationInProgress,
    OperationSuccess,
    RetryAttempt,
    RetryExhausted,
    RetrySuccess,
)
from infrastructure.operations.errors import ServiceUnavailableError

pytestmark = pytest.mark.unit


class TestEventTypes:
    """Tests for event_type discriminators."""

    @pytest.mark.parametrize(
        "event_class,event_type",
        [
            (OperationInProgress, "operation.in_progress"),
            (OperationSuccess, "operation.success"),
            (OperationFailure, "operation.failure"),
            (RetryAttempt, "retry.attempt"),
            (RetrySuccess, "retry.success"),
            (RetryExhausted, "retry.exhausted"),
            (CircuitOpened, "circuit.opened"),
            (CircuitHalfOpened, "circuit.half_opened"),
            (CircuitClosed, "circuit.closed"),
            (CircuitRejected, "circuit.rejected"),
        ],
    )
    def test_event_type_is_class_level(self, event_class, event_type):
        assert event_class.event_type == event_type
        assert "event_type" not in {f.name for f in dataclasses.fields(event_class)}


class TestEventFields:
    """Tests for default fields and immutability."""

    def test_defaults_populated(self):
        event = OperationInProgress(operation="notes_read")
        assert isinstance(event.timestamp, datetime)
        assert isinstance(event.correlation_id, UUID)

    def test_each_event_gets_unique_id(self):
        first = CircuitOpened(operation="notes")
        second = CircuitOpened(operation="notes")
        assert first.correlation_id != second.correlation_id

    def test_events_are_frozen(self):
        event = RetrySuccess(operation="notes_read", total_attempts=2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.total_attempts = 3  # type: ignore[misc]

    def test_fields_are_keyword_only(self):
        with pytest.raises(TypeError):
            RetrySuccess("notes_read", 2)  # type: ignore[misc]


class TestToDict:
    """Tests for Event.to_dict serialization."""

    def test_retry_attempt(self):
        cause = ServiceUnavailableError("backend down")
        event = RetryAttempt(
            operation="notes_read", attempt_number=1, delay=1.0, cause=cause
        )

        data = event.to_dict()

        assert data["event_type"] == "retry.attempt"
        assert data["operation"] == "notes_read"
        assert data["attempt_number"] == 1
        assert data["delay"] == 1.0
        assert data["cause"] == "backend down"
        assert data["timestamp"] == event.timestamp.isoformat()
        assert data["correlation_id"] == str(event.correlation_id)

    def test_success_result_passed_through(self):
        event = OperationSuccess(operation="tasks_list", result=[{"id": "t-1"}])
        assert event.to_dict()["result"] == [{"id": "t-1"}]

    def test_failure_error_stringified(self):
        event = OperationFailure(operation="tasks_list", error=ValueError("bad"))
        assert event.to_dict()["error"] == "bad"
