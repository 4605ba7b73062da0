"""ASGI interception middleware for FastAPI and Starlette applications.

The middleware is the interception source observed by RequestWaiter. For
each intercepted request it:

1. Buffers the body into an InterceptedRequest and takes a pristine
   snapshot before any endpoint can read it
2. Emits ``request:start``
3. Asks the application's router whether any route fully matches
4. If one does, emits ``request:match`` and runs the application;
   otherwise emits ``request:unhandled`` and applies the unhandled strategy
5. Emits ``request:end``, with the response status when the application
   produced a response

Every event carries its own clone of the snapshot, so how the endpoint
consumes its request body never affects what observers can read.

Endpoints reach their own read-once view of the request through
``get_intercepted_request(request)``.

Examples:
    FastAPI integration::

        from fastapi import FastAPI, Request
        from interception_harness.adapters.asgi import (
            InterceptionMiddleware,
            get_intercepted_request,
        )
        from interception_harness.events import LifecycleEmitter

        emitter = LifecycleEmitter()
        app = FastAPI()
        app.add_middleware(InterceptionMiddleware, emitter=emitter)

        @app.post("/json")
        async def create(request: Request):
            body = await get_intercepted_request(request).clone().json()
            return {"foo": "bar"}
"""

from collections.abc import Awaitable, Callable
from typing import Any
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Match

from interception_harness.config import InterceptionConfig
from interception_harness.events import LifecycleEmitter
from interception_harness.exceptions import UnhandledRequestError
from interception_harness.models import EventKind, InterceptedRequest, LifecycleEvent
from interception_harness.observability.logging import get_logger

logger = get_logger(__name__)


def get_intercepted_request(request: StarletteRequest) -> InterceptedRequest:
    """Return the InterceptedRequest the middleware attached to ``request``.

    Raises:
        LookupError: If the request did not pass through InterceptionMiddleware.
    """
    intercepted = getattr(request.state, "intercepted", None)
    if intercepted is None:
        raise LookupError("Request was not intercepted by InterceptionMiddleware")
    return intercepted


class InterceptionMiddleware(BaseHTTPMiddleware):
    """ASGI middleware emitting request lifecycle events.

    Attributes:
        emitter: Event source that receives the lifecycle events
        config: Configuration object
    """

    def __init__(
        self,
        app: Any,
        emitter: LifecycleEmitter,
        config: InterceptionConfig | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application
            emitter: Event source to emit lifecycle events on
            config: Configuration object (uses defaults if not provided)
        """
        super().__init__(app)
        self.emitter = emitter
        self.config = config or InterceptionConfig()

    async def dispatch(
        self,
        request: StarletteRequest,
        call_next: Callable[[StarletteRequest], Awaitable[Response]],
    ) -> Response:
        """Intercept one request and emit its lifecycle events."""
        if request.method.upper() not in self.config.intercepted_methods:
            return await call_next(request)

        intercepted = await self._convert_request(request)
        snapshot = intercepted.clone()
        request_id = uuid4().hex

        request.state.intercepted = intercepted
        request.state.request_id = request_id

        logger.debug(
            "interception.start",
            method=intercepted.method,
            url=intercepted.url,
            request_id=request_id,
        )
        await self._emit(EventKind.START, snapshot, request_id)

        response: Response | None = None
        try:
            if self._is_handled(request):
                await self._emit(EventKind.MATCH, snapshot, request_id)
                response = await call_next(request)
            else:
                await self._emit(EventKind.UNHANDLED, snapshot, request_id)
                response = await self._handle_unhandled(request, intercepted, call_next)
        finally:
            await self._emit(
                EventKind.END,
                snapshot,
                request_id,
                response_status=response.status_code if response is not None else None,
            )
        return response

    async def _convert_request(self, request: StarletteRequest) -> InterceptedRequest:
        """Buffer the Starlette request into an InterceptedRequest.

        Starlette replays the buffered body to the downstream app, so the
        endpoint can still read it through its own Request object.
        """
        body = await request.body()

        return InterceptedRequest(
            method=request.method,
            url=str(request.url),
            headers=dict(request.headers.items()),
            body=body,
        )

    async def _emit(
        self,
        kind: EventKind,
        snapshot: InterceptedRequest,
        request_id: str,
        response_status: int | None = None,
    ) -> None:
        await self.emitter.emit(
            LifecycleEvent(
                kind=kind,
                request=snapshot.clone(),
                request_id=request_id,
                response_status=response_status,
            )
        )

    def _is_handled(self, request: StarletteRequest) -> bool:
        """Check whether any route of the application fully matches.

        Applications without a router are treated as handling everything.
        """
        router = getattr(request.scope.get("app"), "router", None)
        routes = getattr(router, "routes", None)
        if routes is None:
            return True

        for route in routes:
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                return True
        return False

    async def _handle_unhandled(
        self,
        request: StarletteRequest,
        intercepted: InterceptedRequest,
        call_next: Callable[[StarletteRequest], Awaitable[Response]],
    ) -> Response:
        """Apply the configured on_unhandled strategy."""
        strategy = self.config.on_unhandled
        error = UnhandledRequestError(intercepted.method, intercepted.url)

        if strategy == "error":
            logger.error(
                "interception.unhandled",
                method=intercepted.method,
                url=intercepted.url,
                strategy=strategy,
            )
            return PlainTextResponse(error.message, status_code=500)

        if strategy == "warn":
            logger.warning(
                "interception.unhandled",
                method=intercepted.method,
                url=intercepted.url,
                strategy=strategy,
            )

        return await call_next(request)
