"""
apishell: Test Configuration (conftest.py)
==========================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    ├── error_log:      MagicMock standing in for the injected logging sink
    ├── make_request:   Factory for bare Starlette requests (unit tests)
    ├── call_next:      AsyncMock continuation for error middleware
    ├── test_settings:  Settings for a development-mode app
    ├── failing_router: Routes that raise the errors the chain must handle
    └── test_client:    HTTPX AsyncClient talking to a fully assembled app
"""

import logging
import os
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

# Set before any apishell import so the module-level settings pick them up
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from fastapi import APIRouter, Request
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from starlette.requests import Request as StarletteRequest
from starlette.responses import PlainTextResponse

from apishell.config import Settings
from apishell.exceptions import RequestError, ValidationError
from apishell.main import build_error_chain, create_app
from apishell.routes import health


class Item(BaseModel):
    qty: int


# ══════════════════════════════════════════════════════════════════════════
# Unit-test helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def error_log():
    """A logger double; assertions read `error_log.log.call_args_list`."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def make_request():
    """
    Build a Starlette Request without a running server.

    Usage:
        request = make_request(headers={"x-token": "abc"}, body={"a": 1})
    """

    def _make(
        headers: Optional[Dict[str, str]] = None,
        path_params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        method: str = "POST",
        path: str = "/items/1",
    ) -> StarletteRequest:
        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": [
                (key.lower().encode("latin-1"), value.encode("latin-1"))
                for key, value in (headers or {}).items()
            ],
            "path_params": path_params or {},
            "state": {},
        }
        if body is not None:
            scope["state"]["body"] = body
        return StarletteRequest(scope)

    return _make


@pytest.fixture
def call_next():
    """Continuation that records the forwarded error and returns a marker response."""
    return AsyncMock(return_value=PlainTextResponse("forwarded", status_code=599))


# ══════════════════════════════════════════════════════════════════════════
# Application fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings():
    return Settings(
        environment="development",
        cors_origin="http://localhost:3000",
        allow_http=True,
    )


@pytest.fixture
def failing_router():
    """
    Routes covering the error shapes the error chain must answer.

        GET  /boom             unclassified exception (→ 500)
        GET  /forbidden        RequestError 403
        GET  /unavailable      RequestError 503
        GET  /items/{item_id}  RequestError 409 with path params
        POST /validate         ValidationError with an `errors` payload
        POST /echo             returns the parsed body
        POST /raw              returns the raw body length read by the route
        GET  /large            response big enough to be compressed
        GET  /model            pydantic ValidationError raised inside a route
        GET  /quantity/{qty}   int path param, RequestValidationError on bad input
        GET  /health           the stock health probe
    """
    router = APIRouter()
    router.include_router(health.router)

    @router.get("/boom")
    async def boom():
        raise RuntimeError("connection string leaked: postgres://secret")

    @router.get("/forbidden")
    async def forbidden():
        raise RequestError("Only HTTPS allowed.", status=403)

    @router.get("/unavailable")
    async def unavailable():
        raise RequestError("Down for maintenance", status=503)

    @router.get("/items/{item_id}")
    async def conflict(item_id: str):
        raise RequestError(f"Item {item_id} is locked", status=409)

    @router.post("/validate")
    async def validate():
        raise ValidationError({"email": "must be a valid address"})

    @router.post("/echo")
    async def echo(request: Request):
        return {"body": getattr(request.state, "body", None)}

    @router.post("/raw")
    async def raw(request: Request):
        return {"length": len(await request.body())}

    @router.get("/large")
    async def large():
        return {"data": "x" * 2000}

    @router.get("/model")
    async def model():
        Item(qty="not a number")

    @router.get("/quantity/{qty}")
    async def quantity(qty: int):
        return {"qty": qty}

    return router


@pytest.fixture
def build_client(failing_router, error_log):
    """
    Factory for clients over freshly assembled apps.

    The error chain logs to the `error_log` double so tests can assert on
    what was logged for a request.
    """

    def _build(settings: Settings) -> AsyncClient:
        app = create_app(
            settings=settings,
            router=failing_router,
            error_chain=build_error_chain(error_log),
        )
        transport = ASGITransport(app=app)
        return AsyncClient(transport=transport, base_url="http://test")

    return _build


@pytest_asyncio.fixture
async def test_client(build_client, test_settings):
    """
    HTTPX AsyncClient configured to talk to the assembled app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    async with build_client(test_settings) as client:
        yield client
