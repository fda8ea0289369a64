"""Unit tests for ResilienceService."""

import pytest

from infrastructure.configuration import (
    CircuitBreakerSettings,
    RetrySettings,
    Settings,
)
from infrastructure.events import EventChannel
from infrastructure.resilience import (
    CircuitBreakerConfig,
    CircuitState,
    ResilienceService,
    RetryConfig,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def service():
    return ResilienceService(
        Settings(
            retry=RetrySettings(RETRY_MAX_ATTEMPTS=4),
            circuit_breaker=CircuitBreakerSettings(CIRCUIT_BREAKER_FAILURE_THRESHOLD=2),
        )
    )


class TestCircuitBreakerRegistry:
    """Tests for the named breaker registry."""

    def test_create_uses_settings_config(self, service):
        breaker = service.create_circuit_breaker("notes")
        assert breaker.name == "notes"
        assert breaker.config.failure_threshold == 2
        assert service.list_circuit_breakers() == ["notes"]

    def test_create_with_explicit_config(self, service):
        breaker = service.create_circuit_breaker(
            "tasks", config=CircuitBreakerConfig(failure_threshold=9)
        )
        assert breaker.config.failure_threshold == 9

    def test_duplicate_name_raises(self, service):
        service.create_circuit_breaker("notes")
        with pytest.raises(ValueError, match="already exists"):
            service.create_circuit_breaker("notes")

    def test_get_or_create_returns_existing(self, service):
        first = service.get_or_create_circuit_breaker("notes")
        assert service.get_or_create_circuit_breaker("notes") is first
        assert service.get_circuit_breaker("notes") is first
        assert service.get_circuit_breaker("missing") is None

    def test_stats_and_open_breakers(self, service):
        service.create_circuit_breaker("notes")
        tasks = service.create_circuit_breaker("tasks")
        tasks._transition_to_open()

        stats = service.get_all_circuit_breaker_stats()

        assert set(stats) == {"notes", "tasks"}
        assert stats["tasks"]["state"] == "open"
        assert service.get_open_circuit_breakers() == ["tasks"]

    def test_reset_single_breaker(self, service):
        breaker = service.create_circuit_breaker("notes")
        breaker._transition_to_open()

        service.reset_circuit_breaker("notes")

        assert breaker.state == CircuitState.CLOSED

    def test_reset_unknown_breaker_raises(self, service):
        with pytest.raises(KeyError):
            service.reset_circuit_breaker("missing")

    def test_reset_all(self, service):
        for name in ("notes", "tasks"):
            service.create_circuit_breaker(name)._transition_to_open()

        service.reset_all()

        assert service.get_open_circuit_breakers() == []


class TestCreateExecutor:
    """Tests for executor construction."""

    def test_executor_shares_channel_with_breaker(self, service):
        channel = EventChannel("notes")

        executor = service.create_executor("notes", channel=channel)

        assert executor.channel is channel
        assert executor.circuit_breaker is service.get_circuit_breaker("notes")
        assert executor.circuit_breaker.channel is channel
        assert executor.retry_policy.max_attempts == 4

    def test_executor_creates_channel_when_missing(self, service):
        executor = service.create_executor("notes")
        assert executor.channel.name == "notes"

    def test_executor_retry_override(self, service):
        executor = service.create_executor("notes", retry_config=RetryConfig.lightweight())
        assert executor.retry_policy.max_attempts == 2

    def test_gate_each_attempt_passed_through(self, service):
        executor = service.create_executor("notes", gate_each_attempt=False)
        assert executor.gate_each_attempt is False

    def test_disabled_breakers(self):
        service = ResilienceService(
            Settings(circuit_breaker=CircuitBreakerSettings(CIRCUIT_BREAKER_ENABLED=False))
        )

        executor = service.create_executor("notes")

        assert service.circuit_breaker_enabled is False
        assert executor.circuit_breaker is None
        assert service.list_circuit_breakers() == []

    def test_retry_config_property(self, service):
        assert service.retry_config.max_attempts == 4
