"""Core type definitions for the interception harness.

This module provides the data structures shared by the interception
middleware and the request waiter: lifecycle event kinds, waiter states,
the intercepted request descriptor and the lifecycle event envelope.

The request descriptor follows fetch body semantics. Its body can be read
once; a second read raises BodyConsumedError. ``clone()`` gives an
independent duplicate whose body can be read without affecting the original,
as long as it is called before the original is consumed.

Examples:
    Reading a body through a duplicate::

        request = InterceptedRequest("POST", "http://localhost/json", body=b'{"a": 1}')
        await request.clone().json()  # {"a": 1}
        await request.json()          # {"a": 1}, original still readable
        await request.json()          # raises BodyConsumedError
"""

import json
from collections.abc import AsyncIterator, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from interception_harness.exceptions import BodyConsumedError, BodyDecodeError


class EventKind(str, Enum):
    """Lifecycle stages emitted for each intercepted request.

    Attributes:
        START: Emitted once per request, before dispatch.
        MATCH: A registered route handled the request.
        UNHANDLED: No registered route matched the request.
        END: The response has been produced.
    """

    START = "request:start"
    MATCH = "request:match"
    UNHANDLED = "request:unhandled"
    END = "request:end"


class WaiterState(str, Enum):
    """State of a single wait_for_request invocation.

    IDLE -> TRACKING -> RESOLVED | REJECTED. CANCELLED is reachable from
    IDLE or TRACKING when the caller abandons the wait. RESOLVED, REJECTED
    and CANCELLED are terminal.
    """

    IDLE = "IDLE"
    TRACKING = "TRACKING"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (WaiterState.RESOLVED, WaiterState.REJECTED, WaiterState.CANCELLED)


class InterceptedRequest:
    """Snapshot of an intercepted HTTP request with a read-once body.

    Attributes:
        method: HTTP method as received (compare case-insensitively).
        url: Full request URL as produced by the interceptor.
        headers: Read-only mapping of lowercase header names to values.
    """

    def __init__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        self._method = method
        self._url = url
        self._headers = MappingProxyType(
            {key.lower(): value for key, value in (headers or {}).items()}
        )
        self._body = bytes(body)
        self._body_used = False

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        return self._url

    @property
    def headers(self) -> Mapping[str, str]:
        return self._headers

    @property
    def body_used(self) -> bool:
        """True once any read method has consumed the body."""
        return self._body_used

    def _consume(self) -> bytes:
        if self._body_used:
            raise BodyConsumedError(
                f"Body of the {self._method} {self._url} request has already been read"
            )
        self._body_used = True
        return self._body

    def clone(self) -> "InterceptedRequest":
        """Return an independent duplicate with its own unread body.

        Raises:
            BodyConsumedError: If this request's body was already read.
        """
        if self._body_used:
            raise BodyConsumedError(
                f"Cannot clone the {self._method} {self._url} request: "
                "its body has already been read"
            )
        return InterceptedRequest(self._method, self._url, self._headers, self._body)

    async def body(self) -> bytes:
        """Read the whole body as bytes."""
        return self._consume()

    async def text(self, encoding: str = "utf-8") -> str:
        """Read the whole body and decode it as text.

        Raises:
            BodyConsumedError: If the body was already read.
            BodyDecodeError: If the bytes are not valid in ``encoding``.
        """
        raw = self._consume()
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as e:
            raise BodyDecodeError(
                f"Body of the {self._method} {self._url} request is not valid {encoding}",
                cause=e,
            ) from e

    async def json(self) -> Any:
        """Read the whole body and decode it as JSON.

        Raises:
            BodyConsumedError: If the body was already read.
            BodyDecodeError: If the body is not valid JSON.
        """
        text = await self.text()
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise BodyDecodeError(
                f"Body of the {self._method} {self._url} request is not valid JSON: {e}",
                cause=e,
            ) from e

    async def stream(self, chunk_size: int = 65536) -> AsyncIterator[bytes]:
        """Iterate over the body in chunks. Consumes the body on first call."""
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        raw = self._consume()
        for start in range(0, len(raw), chunk_size):
            yield raw[start : start + chunk_size]

    def __repr__(self) -> str:
        return (
            f"InterceptedRequest(method={self._method!r}, url={self._url!r}, "
            f"body_used={self._body_used})"
        )


class LifecycleEvent(BaseModel):
    """A lifecycle notification for one intercepted request.

    Attributes:
        kind: Which lifecycle stage this event describes.
        request: Descriptor of the intercepted request. Each event carries
            its own duplicate, so listeners never exhaust each other's body.
        request_id: Opaque identifier shared by every event of one request.
        response_status: Status code of the produced response (END only).

    Examples:
        >>> event = LifecycleEvent(
        ...     kind=EventKind.START,
        ...     request=InterceptedRequest("GET", "http://localhost/"),
        ...     request_id="3f2a",
        ... )
        >>> event.kind.value
        'request:start'
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: EventKind = Field(..., description="Lifecycle stage")
    request: InterceptedRequest = Field(..., description="Intercepted request descriptor")
    request_id: str = Field(..., min_length=1, description="Request correlation identifier")
    response_status: int | None = Field(
        default=None,
        ge=100,
        le=599,
        description="Response status code, set on request:end",
    )
