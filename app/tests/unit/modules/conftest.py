"""Fixtures for data source tests.

Level: Data sources wired to an in-process fake backend
"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from infrastructure.cache import InMemoryCache
from infrastructure.clients import ApiClient
from infrastructure.events import EventChannel
from infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    ResilientExecutor,
    RetryConfig,
    RetryPolicy,
)
from modules.auth import AuthDataSource

BASE_URL = "https://api.test/v1"


class FakeBackend:
    """Scripted backend served through ``httpx.MockTransport``.

    Routes map ``(method, path)`` to a list of replies consumed in order;
    the last reply repeats. A reply is a ``(status, body)`` tuple, an
    exception to raise, or a callable taking the request.
    """

    def __init__(self):
        self.requests = []
        self._routes = {}

    def on(self, method, path, *replies):
        self._routes[(method, f"/v1{path}")] = list(replies)

    def requests_to(self, method, path):
        return [
            r for r in self.requests if r.method == method and r.url.path == f"/v1{path}"
        ]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        # Yield so concurrent callers interleave
        await asyncio.sleep(0)
        self.requests.append(request)
        replies = self._routes.get((request.method, request.url.path))
        if not replies:
            return httpx.Response(404, json={"message": "Not found"})
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(request)
        status, body = reply
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


class FakeUtcClock:
    """Manually advanced aware UTC clock."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api_client(backend):
    return ApiClient(base_url=BASE_URL, transport=httpx.MockTransport(backend))


@pytest.fixture
def make_executor(fake_clock, fake_sleep):
    """Executor with a private channel, a fake-clock breaker and no real sleeps."""

    def _make(name, max_attempts=3, failure_threshold=5):
        channel = EventChannel(name)
        breaker = CircuitBreaker(
            name,
            config=CircuitBreakerConfig(failure_threshold=failure_threshold),
            channel=channel,
            clock=fake_clock,
        )
        return ResilientExecutor(
            retry_policy=RetryPolicy(RetryConfig(max_attempts=max_attempts)),
            circuit_breaker=breaker,
            channel=channel,
            sleep=fake_sleep,
        )

    return _make


@pytest.fixture
def utc_clock():
    return FakeUtcClock()


@pytest.fixture
def auth(api_client, make_executor, utc_clock):
    return AuthDataSource(
        api_client,
        executor=make_executor("auth"),
        store=InMemoryCache(),
        clock=utc_clock,
    )
