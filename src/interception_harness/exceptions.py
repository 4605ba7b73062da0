"""Custom exceptions for the interception harness.

This module defines the exception hierarchy used to signal why a waited-for
request did not produce a decoded body: the request went unhandled, its body
could not be decoded, its body had already been consumed, or the wait timed
out.

Examples:
    Distinguishing failure kinds::

        from interception_harness.exceptions import (
            BodyDecodeError,
            UnhandledRequestError,
        )

        try:
            body = await waiter.wait_for_request("POST", "http://localhost/json")
        except UnhandledRequestError as e:
            logger.warning("request.unhandled", method=e.method, url=e.url)
        except BodyDecodeError as e:
            logger.error("request.body_invalid", error=str(e))
"""


class InterceptionError(Exception):
    """Base exception for all interception-related errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class UnhandledRequestError(InterceptionError):
    """No registered handler matched the tracked request.

    Attributes:
        message: Human-readable error description.
        method: HTTP method of the unhandled request.
        url: Full URL of the unhandled request.

    Examples:
        >>> error = UnhandledRequestError("POST", "http://localhost/json")
        >>> str(error)
        'The POST http://localhost/json request was unhandled.'
    """

    def __init__(self, method: str, url: str) -> None:
        """Initialize the error from the unhandled request's method and URL.

        Args:
            method: HTTP method of the unhandled request.
            url: Full URL of the unhandled request.
        """
        super().__init__(f"The {method} {url} request was unhandled.")
        self.method = method
        self.url = url


class BodyDecodeError(InterceptionError):
    """The request body could not be decoded as JSON.

    Attributes:
        message: Human-readable error description.
        cause: The underlying decoding exception, if any.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class BodyConsumedError(InterceptionError):
    """The body stream was already read and cannot be read or cloned again."""


class WaitTimeoutError(InterceptionError):
    """The waited-for request did not settle before the deadline.

    Attributes:
        message: Human-readable error description.
        method: Expected HTTP method.
        url: Expected URL.
        timeout: The deadline in seconds that elapsed.
    """

    def __init__(self, method: str, url: str, timeout: float) -> None:
        super().__init__(
            f"Timed out after {timeout:g}s waiting for the {method} {url} request."
        )
        self.method = method
        self.url = url
        self.timeout = timeout
