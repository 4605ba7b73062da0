"""Framework adapters for the interception layer.

This package contains adapters that turn framework request handling into
lifecycle events:
- ASGI: For FastAPI, Starlette, and other ASGI frameworks
"""

from interception_harness.adapters.asgi import InterceptionMiddleware, get_intercepted_request

__all__ = ["InterceptionMiddleware", "get_intercepted_request"]
