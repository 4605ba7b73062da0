"""Request correlation harness.

A RequestWaiter observes the lifecycle events of an interception source and
hands out PendingRequest objects, one per ``wait_for_request`` call. Each
PendingRequest is a single-slot state machine:

    IDLE -> TRACKING -> RESOLVED | REJECTED
    IDLE | TRACKING -> CANCELLED

- IDLE: listening for the first ``request:start`` whose method (compared
  case-insensitively) and URL (compared exactly) match.
- TRACKING: the request identifier of that start event is recorded. Later
  start events are ignored, so two overlapping requests to the same method
  and URL within one wait are not supported.
- RESOLVED: a ``request:match`` for the tracked identifier arrived and the
  body, read through a duplicate of the request, decoded as JSON.
- REJECTED: the tracked request went unhandled, its body could not be read
  or decoded, or the deadline passed.
- CANCELLED: the caller cancelled the wait.

Listeners are registered when the wait starts and removed as soon as it
reaches a terminal state, so repeated waits on a long-lived emitter do not
accumulate subscriptions.

Examples:
    Waiting for a request made by the code under test::

        emitter = LifecycleEmitter()
        app.add_middleware(InterceptionMiddleware, emitter=emitter)
        waiter = RequestWaiter(emitter)

        pending = waiter.wait_for_request("POST", "http://localhost/json", timeout=5)
        response = await client.post("/json", json={"firstName": "John"})
        assert await pending == {"firstName": "John"}
"""

import asyncio
from collections.abc import Generator
from typing import Any

from interception_harness.config import InterceptionConfig
from interception_harness.events import LifecycleEmitter
from interception_harness.exceptions import (
    BodyConsumedError,
    BodyDecodeError,
    InterceptionError,
    UnhandledRequestError,
    WaitTimeoutError,
)
from interception_harness.models import EventKind, LifecycleEvent, WaiterState
from interception_harness.observability.logging import get_logger
from interception_harness.observability.metrics import (
    decrement_active_waiters,
    increment_active_waiters,
    record_outcome,
)

logger = get_logger(__name__)

_USE_CONFIG_DEFAULT: Any = object()


class PendingRequest:
    """Single-shot handle for one ``wait_for_request`` invocation.

    Awaiting it returns the decoded JSON body of the tracked request, or
    raises the InterceptionError that rejected it. It settles at most once;
    events that arrive after settlement have no effect.

    Attributes:
        method: Expected HTTP method.
        url: Expected URL, compared exactly.
        timeout: Deadline in seconds, or None to wait indefinitely.
        state: Current WaiterState.
        request_id: Identifier of the tracked request, None while IDLE.
    """

    def __init__(
        self,
        emitter: LifecycleEmitter,
        method: str,
        url: str,
        timeout: float | None = None,
    ) -> None:
        """Subscribe to ``emitter`` and start waiting.

        Must be called from a running event loop.

        Raises:
            ValueError: If method is empty or timeout is not positive.
        """
        if not method:
            raise ValueError("method must be a non-empty string")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        self.method = method
        self.url = url
        self.timeout = timeout
        self.state = WaiterState.IDLE
        self.request_id: str | None = None

        loop = asyncio.get_running_loop()
        self._emitter = emitter
        self._future: asyncio.Future[Any] = loop.create_future()
        self._subscriptions = (
            (EventKind.START, self._on_start),
            (EventKind.MATCH, self._on_match),
            (EventKind.UNHANDLED, self._on_unhandled),
        )
        self._subscribed = False
        self._timer: asyncio.TimerHandle | None = None

        self._subscribe()
        if timeout is not None:
            self._timer = loop.call_later(timeout, self._on_timeout)
        self._future.add_done_callback(self._on_done)

    def __await__(self) -> Generator[Any, None, Any]:
        return self._future.__await__()

    def done(self) -> bool:
        return self._future.done()

    def cancel(self) -> bool:
        """Abandon the wait. Returns False if it had already settled."""
        if not self._future.cancel():
            return False
        self._on_done(self._future)
        return True

    def result(self) -> Any:
        """Return the decoded body; raises like ``asyncio.Future.result``."""
        return self._future.result()

    def exception(self) -> BaseException | None:
        return self._future.exception()

    @property
    def subscribed(self) -> bool:
        """True while this wait holds listeners on the emitter."""
        return self._subscribed

    def _subscribe(self) -> None:
        for kind, listener in self._subscriptions:
            self._emitter.on(kind, listener)
        self._subscribed = True
        increment_active_waiters()

    def _unsubscribe(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self._subscribed:
            return
        for kind, listener in self._subscriptions:
            self._emitter.off(kind, listener)
        self._subscribed = False
        decrement_active_waiters()

    def _on_start(self, event: LifecycleEvent) -> None:
        if self.request_id is not None:
            return

        matches_method = event.request.method.lower() == self.method.lower()
        matches_url = event.request.url == self.url
        if matches_method and matches_url:
            self.request_id = event.request_id
            self.state = WaiterState.TRACKING
            logger.debug(
                "waiter.tracking",
                method=self.method,
                url=self.url,
                request_id=event.request_id,
            )

    async def _on_match(self, event: LifecycleEvent) -> None:
        if self._future.done() or event.request_id != self.request_id:
            return

        # Read a duplicate; the original may still be read by other listeners
        try:
            body = await event.request.clone().json()
        except BodyDecodeError as e:
            self._reject(e, outcome="decode_error")
            return
        except BodyConsumedError as e:
            self._reject(e, outcome="body_consumed")
            return

        self._resolve(body)

    def _on_unhandled(self, event: LifecycleEvent) -> None:
        if self._future.done() or event.request_id != self.request_id:
            return
        self._reject(
            UnhandledRequestError(event.request.method, event.request.url),
            outcome="unhandled",
        )

    def _on_timeout(self) -> None:
        self._timer = None
        if self._future.done():
            return
        self._reject(
            WaitTimeoutError(self.method, self.url, self.timeout or 0),
            outcome="timeout",
        )

    def _resolve(self, body: Any) -> None:
        if self._future.done():
            return
        self.state = WaiterState.RESOLVED
        self._future.set_result(body)
        self._unsubscribe()
        record_outcome("resolved")
        logger.debug("waiter.resolved", method=self.method, url=self.url, request_id=self.request_id)

    def _reject(self, error: InterceptionError, outcome: str) -> None:
        if self._future.done():
            return
        self.state = WaiterState.REJECTED
        self._future.set_exception(error)
        self._unsubscribe()
        record_outcome(outcome)
        logger.info(
            "waiter.rejected",
            method=self.method,
            url=self.url,
            request_id=self.request_id,
            outcome=outcome,
            error=error.message,
        )

    def _on_done(self, future: asyncio.Future[Any]) -> None:
        if future.cancelled() and not self.state.is_terminal:
            self.state = WaiterState.CANCELLED
            record_outcome("cancelled")
            logger.debug("waiter.cancelled", method=self.method, url=self.url)
        self._unsubscribe()

    def __repr__(self) -> str:
        return (
            f"PendingRequest(method={self.method!r}, url={self.url!r}, "
            f"state={self.state.value}, request_id={self.request_id!r})"
        )


class RequestWaiter:
    """Creates PendingRequest correlations against one lifecycle emitter.

    Attributes:
        emitter: The event source observed by every wait.
        config: Supplies the default deadline.
    """

    def __init__(
        self,
        emitter: LifecycleEmitter,
        config: InterceptionConfig | None = None,
    ) -> None:
        self.emitter = emitter
        self.config = config or InterceptionConfig()
        self._pending: set[PendingRequest] = set()

    def wait_for_request(
        self,
        method: str,
        url: str,
        timeout: float | None = _USE_CONFIG_DEFAULT,
    ) -> PendingRequest:
        """Start waiting for the next ``method`` request to ``url``.

        Call this before the request is sent; a start event emitted earlier
        is not seen.

        Args:
            method: HTTP method, compared case-insensitively.
            url: Full URL, compared exactly (no normalization).
            timeout: Deadline in seconds. Defaults to
                ``config.default_wait_timeout_seconds``; pass None to wait
                without a deadline.

        Returns:
            A PendingRequest that resolves with the decoded JSON body.
        """
        if timeout is _USE_CONFIG_DEFAULT:
            timeout = self.config.default_wait_timeout_seconds

        pending = PendingRequest(self.emitter, method, url, timeout=timeout)
        self._prune()
        self._pending.add(pending)
        return pending

    def _prune(self) -> None:
        self._pending = {pending for pending in self._pending if not pending.done()}

    @property
    def pending_count(self) -> int:
        """Number of waits that have not settled yet."""
        self._prune()
        return len(self._pending)

    def cancel_all(self) -> int:
        """Cancel every unsettled wait. Returns how many were cancelled."""
        cancelled = sum(1 for pending in list(self._pending) if pending.cancel())
        self._prune()
        return cancelled
