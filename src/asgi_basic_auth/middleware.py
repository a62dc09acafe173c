"""ASGI middleware that guards an application with HTTP Basic authentication."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from contextvars import ContextVar
from typing import Any

from asgi_basic_auth import authenticator
from asgi_basic_auth.config import ConfigStore, CredentialLookupError, resolve
from asgi_basic_auth.conn import Conn
from asgi_basic_auth.strategy import Strategy

logger = logging.getLogger(__name__)

# Assigns made by a callback, visible to the wrapped app for one request
auth_assigns_var: ContextVar[Mapping[str, Any] | None] = ContextVar("auth_assigns", default=None)


class BasicAuthMiddleware:
    """ASGI middleware that authenticates requests with HTTP Basic auth.

    Either pass a ready ``strategy`` or the setup options accepted by
    :func:`asgi_basic_auth.config.resolve`. Setup errors raise
    :class:`~asgi_basic_auth.config.ConfigurationError` here, not per request.

    Args:
        app: The ASGI application to wrap.
        strategy: A pre-built strategy.
        use_config: ``(namespace, key)`` of a credentials entry in ``store``.
        callback: Authentication function of arity 2 or 3.
        realm: Realm for callback strategies.
        store: Configuration store for ``use_config``.
        exempt_paths: Exact paths that bypass authentication.
        exempt_prefixes: Path prefixes that bypass authentication.
    """

    def __init__(
        self,
        app: Any,
        strategy: Strategy | None = None,
        *,
        use_config: tuple[str, str] | None = None,
        callback: Callable[..., Any] | None = None,
        realm: str | None = None,
        store: ConfigStore | None = None,
        exempt_paths: set[str] | None = None,
        exempt_prefixes: set[str] | None = None,
    ) -> None:
        self._app = app
        if strategy is None:
            strategy = resolve(use_config=use_config, callback=callback, realm=realm, store=store)
        self._strategy = strategy
        self._exempt_paths = exempt_paths or set()
        self._exempt_prefixes = exempt_prefixes or set()

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    def _is_exempt(self, path: str) -> bool:
        """Check if a path is exempt from authentication."""
        if path in self._exempt_paths:
            return True
        return any(path.startswith(prefix) for prefix in self._exempt_prefixes)

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        path = scope.get("path", "")
        if self._is_exempt(path):
            await self._app(scope, receive, send)
            return

        try:
            conn = authenticator.call(Conn.from_scope(scope), self._strategy)
        except CredentialLookupError:
            logger.error("Basic auth credentials are misconfigured; refusing %s", path)
            raise

        if conn.halted:
            logger.warning("Authentication failed for %s", path)
            await self._send_response(conn, send)
            return

        if conn.assigns:
            scope.setdefault("state", {}).update(conn.assigns)

        if conn.resp_headers:
            send = self._with_headers(conn.resp_headers, send)

        token = auth_assigns_var.set(dict(conn.assigns))
        try:
            await self._app(scope, receive, send)
        finally:
            auth_assigns_var.reset(token)

    @staticmethod
    def _with_headers(resp_headers: list[tuple[str, str]], send: Any) -> Any:
        """Wrap ``send`` so the app's response carries headers set on the conn.

        Headers the app sets itself win over same-name conn headers.
        """
        extra = [(name.encode("latin-1"), value.encode("latin-1")) for name, value in resp_headers]

        async def send_with_headers(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                present = {bytes(name).lower() for name, _ in headers}
                headers.extend([name, value] for name, value in extra if name not in present)
                message = {**message, "headers": headers}
            await send(message)

        return send_with_headers

    @staticmethod
    async def _send_response(conn: Conn, send: Any) -> None:
        """Send the response a halted conn describes."""
        body = conn.resp_body.encode("utf-8")
        headers = [[name.encode("latin-1"), value.encode("latin-1")] for name, value in conn.resp_headers]
        names = {name for name, _ in conn.resp_headers}
        if "content-type" not in names:
            headers.append([b"content-type", b"text/plain; charset=utf-8"])
        headers = [h for h in headers if h[0] != b"content-length"]
        headers.append([b"content-length", str(len(body)).encode()])
        await send(
            {
                "type": "http.response.start",
                "status": conn.status or 401,
                "headers": headers,
            }
        )
        await send({"type": "http.response.body", "body": body})
