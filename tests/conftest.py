"""
Pytest configuration and shared fixtures for interception_harness tests.
"""

import json
from collections.abc import Callable

import pytest

from interception_harness.events import LifecycleEmitter
from interception_harness.models import EventKind, InterceptedRequest, LifecycleEvent

EventFactory = Callable[..., LifecycleEvent]


@pytest.fixture
def emitter() -> LifecycleEmitter:
    """Provide a fresh, isolated event source for each test."""
    return LifecycleEmitter()


@pytest.fixture
def sample_url() -> str:
    return "http://localhost/json"


@pytest.fixture
def sample_request_body() -> bytes:
    """Provide a sample request body for tests."""
    return json.dumps({"firstName": "John"}).encode()


@pytest.fixture
def make_event(sample_url: str, sample_request_body: bytes) -> EventFactory:
    """Build lifecycle events the way the middleware would."""

    def factory(
        kind: EventKind,
        request_id: str,
        method: str = "POST",
        url: str | None = None,
        body: bytes | None = None,
    ) -> LifecycleEvent:
        return LifecycleEvent(
            kind=kind,
            request=InterceptedRequest(
                method,
                url if url is not None else sample_url,
                {"content-type": "application/json"},
                body if body is not None else sample_request_body,
            ),
            request_id=request_id,
        )

    return factory
