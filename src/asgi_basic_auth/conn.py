"""Connection object passed through the authenticator and to callbacks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from starlette.datastructures import Headers


@dataclass
class Conn:
    """Inbound request headers plus the response being built for them.

    The authenticator only reads ``Authorization`` from ``req_headers`` and
    only writes the response fields. Callbacks may use :meth:`assign` to hand
    data (such as the authenticated user) to the wrapped application, and
    :meth:`halt` to reject the request.

    Attributes:
        req_headers: Case-insensitive, multi-valued request headers.
        path: Request path, for logging only.
        status: Response status, ``None`` until a response is set.
        resp_headers: Response headers as ``(lowercase name, value)`` pairs.
        resp_body: Response body.
        halted: When True the wrapped application must not run.
        assigns: Values exposed to the application via ``request.state``.
    """

    req_headers: Headers = field(default_factory=Headers)
    path: str = ""
    status: int | None = None
    resp_headers: list[tuple[str, str]] = field(default_factory=list)
    resp_body: str = ""
    halted: bool = False
    assigns: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_scope(cls, scope: dict[str, Any]) -> Conn:
        """Build a conn from an ASGI HTTP scope."""
        raw = [(name.lower(), value) for name, value in scope.get("headers", [])]
        return cls(req_headers=Headers(raw=raw), path=scope.get("path", ""))

    def get_req_header(self, name: str) -> list[str]:
        """Return every value of request header ``name`` (empty if absent)."""
        return self.req_headers.getlist(name)

    def put_resp_header(self, name: str, value: str) -> Conn:
        """Set response header ``name``, replacing earlier values."""
        name = name.lower()
        self.resp_headers = [(k, v) for k, v in self.resp_headers if k != name]
        self.resp_headers.append((name, value))
        return self

    def get_resp_header(self, name: str) -> list[str]:
        name = name.lower()
        return [v for k, v in self.resp_headers if k == name]

    def send_resp(self, status: int, body: str = "") -> Conn:
        self.status = status
        self.resp_body = body
        return self

    def halt(self) -> Conn:
        self.halted = True
        return self

    def assign(self, key: str, value: Any) -> Conn:
        self.assigns[key] = value
        return self
