"""Unit tests for the ASGI interception middleware."""

import httpx
import pytest
from starlette.requests import Request

from interception_harness.adapters.asgi import InterceptionMiddleware, get_intercepted_request
from interception_harness.config import InterceptionConfig
from interception_harness.events import LifecycleEmitter
from interception_harness.models import EventKind, InterceptedRequest, LifecycleEvent


async def raw_app(scope, receive, send) -> None:
    """Bare ASGI app without a router."""
    await send({"type": "http.response.start", "status": 204, "headers": []})
    await send({"type": "http.response.body", "body": b""})


@pytest.fixture
def recorded(emitter: LifecycleEmitter) -> list[LifecycleEvent]:
    events: list[LifecycleEvent] = []
    for kind in EventKind:
        emitter.on(kind, events.append)
    return events


class TestGetInterceptedRequest:
    """Tests for get_intercepted_request."""

    def test_missing_raises_lookup_error(self) -> None:
        request = Request({"type": "http", "method": "GET", "headers": [], "path": "/"})
        with pytest.raises(LookupError):
            get_intercepted_request(request)

    def test_returns_attached_request(self) -> None:
        request = Request({"type": "http", "method": "GET", "headers": [], "path": "/"})
        intercepted = InterceptedRequest("GET", "http://localhost/")
        request.state.intercepted = intercepted
        assert get_intercepted_request(request) is intercepted


class TestRouterlessApp:
    """Apps without a router are treated as handling every request."""

    @pytest.mark.asyncio
    async def test_emits_match(self, emitter: LifecycleEmitter, recorded) -> None:
        app = InterceptionMiddleware(raw_app, emitter=emitter)
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
            response = await client.post("/anything?x=1", content=b'{"a": 1}')

        assert response.status_code == 204
        assert [event.kind for event in recorded] == [
            EventKind.START,
            EventKind.MATCH,
            EventKind.END,
        ]
        start = recorded[0]
        assert start.request.method == "POST"
        assert start.request.url == "http://localhost/anything?x=1"
        assert start.request.headers["content-length"] == "8"
        assert await start.request.json() == {"a": 1}
        assert recorded[-1].response_status == 204

    @pytest.mark.asyncio
    async def test_defaults_config(self, emitter: LifecycleEmitter) -> None:
        middleware = InterceptionMiddleware(raw_app, emitter=emitter)
        assert middleware.config == InterceptionConfig()
        assert middleware.emitter is emitter


class TestListenerFailures:
    """A broken observer must not break the request."""

    @pytest.mark.asyncio
    async def test_request_still_served(self, emitter: LifecycleEmitter) -> None:
        def broken(event: LifecycleEvent) -> None:
            raise RuntimeError("observer exploded")

        emitter.on(EventKind.START, broken)
        app = InterceptionMiddleware(raw_app, emitter=emitter)
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
            response = await client.get("/")

        assert response.status_code == 204
