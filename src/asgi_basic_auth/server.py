"""Demo Starlette application served behind :class:`BasicAuthMiddleware`."""

from __future__ import annotations

import logging
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

from asgi_basic_auth.middleware import BasicAuthMiddleware
from asgi_basic_auth.strategy import Strategy

logger = logging.getLogger(__name__)


async def _health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def _index(request: Request) -> PlainTextResponse:
    user = getattr(request.state, "current_user", None)
    if user:
        return PlainTextResponse(f"Hello, {user}!\n")
    return PlainTextResponse("Hello!\n")


def build_app(
    strategy: Strategy,
    *,
    exempt_paths: set[str] | None = None,
) -> Starlette:
    """Build the demo app with ``/`` protected and ``/health`` (by default) exempt."""
    if exempt_paths is None:
        exempt_paths = {"/health"}
    return Starlette(
        routes=[
            Route("/health", endpoint=_health, methods=["GET"]),
            Route("/", endpoint=_index, methods=["GET"]),
        ],
        middleware=[
            Middleware(BasicAuthMiddleware, strategy=strategy, exempt_paths=exempt_paths),
        ],
    )


def validate_host_port(host: str, port: Any) -> None:
    """Validate host and port parameters."""
    if not host:
        raise ValueError("Host must not be empty")
    if not isinstance(port, int) or port < 1 or port > 65535:
        raise ValueError(f"Port must be between 1 and 65535, got {port}")


def serve(
    strategy: Strategy,
    *,
    host: str = "127.0.0.1",
    port: int = 8000,
    exempt_paths: set[str] | None = None,
    log_level: str = "info",
) -> None:
    """Run the demo app with uvicorn. Blocks until the server stops."""
    validate_host_port(host, port)
    app = build_app(strategy, exempt_paths=exempt_paths)
    logger.info("Serving Basic-auth protected app on %s:%d (realm=%r)", host, port, strategy.resolve_realm())
    uvicorn.run(app, host=host, port=port, log_level=log_level)
