"""End-to-end scenarios for the interception harness.

Each scenario drives a FastAPI app wrapped in InterceptionMiddleware through
httpx's ASGI transport and observes it with a RequestWaiter.
"""
