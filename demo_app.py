"""Demo FastAPI application observed by the request waiter.

The app exposes three endpoints that consume the request body in different
ways. The demo sends the same JSON body to each of them in-process and shows
that the waiter decodes it every time, then shows an unhandled request.

Run with: python demo_app.py
"""

import asyncio
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from pydantic import BaseModel

from interception_harness.adapters.asgi import InterceptionMiddleware, get_intercepted_request
from interception_harness.config import InterceptionConfig
from interception_harness.core.waiter import RequestWaiter
from interception_harness.events import LifecycleEmitter
from interception_harness.exceptions import InterceptionError
from interception_harness.observability.logging import configure_logging

BASE_URL = "http://localhost"

emitter = LifecycleEmitter()
config = InterceptionConfig(
    on_unhandled="warn",
    default_wait_timeout_seconds=5,
)

app = FastAPI(
    title="Interception Harness Demo",
    description="Endpoints that read their request body in different ways",
    version="0.1.0",
)

app.add_middleware(
    InterceptionMiddleware,
    emitter=emitter,
    config=config,
)


class Person(BaseModel):
    firstName: str
    lastName: Optional[str] = None


@app.post("/ignore")
async def ignore_body():
    """Never reads the body."""
    return {"foo": "bar"}


@app.post("/clone")
async def read_clone(request: Request):
    """Reads the body through a duplicate."""
    person = Person(**await get_intercepted_request(request).clone().json())
    return {"greeting": f"Hello {person.firstName}"}


@app.post("/original")
async def read_original(request: Request):
    """Reads, and exhausts, the original body."""
    person = Person(**await get_intercepted_request(request).json())
    return {"greeting": f"Hello {person.firstName}"}


async def main() -> None:
    waiter = RequestWaiter(emitter, config)
    transport = httpx.ASGITransport(app=app)

    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as client:
        for path in ("/ignore", "/clone", "/original", "/missing"):
            pending = waiter.wait_for_request("POST", f"{BASE_URL}{path}")
            response = await client.post(path, json={"firstName": "John"})

            try:
                body = await pending
                print(f"POST {path:<10} -> {response.status_code}, waiter saw {body}")
            except InterceptionError as e:
                print(f"POST {path:<10} -> {response.status_code}, waiter failed: {e}")


if __name__ == "__main__":
    configure_logging(level="WARNING", json_output=False)
    asyncio.run(main())
