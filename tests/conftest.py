"""Shared test fixtures for asgi-basic-auth tests."""

from __future__ import annotations

import base64
from typing import Any

import pytest

from asgi_basic_auth.config import ConfigStore, EnvRef

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def basic_header(credentials: str) -> str:
    """Return an ``Authorization`` value for ``credentials``."""
    return "Basic " + base64.b64encode(credentials.encode("utf-8")).decode("ascii")


def build_scope(
    path: str = "/",
    headers: list[tuple[bytes, bytes]] | None = None,
    scope_type: str = "http",
) -> dict[str, Any]:
    return {
        "type": scope_type,
        "path": path,
        "headers": headers or [],
    }


def auth_headers(*values: str) -> list[tuple[bytes, bytes]]:
    return [(b"authorization", value.encode("latin-1")) for value in values]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> ConfigStore:
    """A store with the entries used across the suite."""
    s = ConfigStore()
    s.put_env("basic_auth", "my_auth", {"username": "admin", "password": "simple:password", "realm": "Admin Area"})
    s.put_env("basic_auth", "no_realm", {"username": "admin", "password": "simple:password"})
    s.put_env("basic_auth", "my_auth_with_key", {"key": "my:secure:key"})
    s.put_env(
        "basic_auth",
        "my_auth_with_system",
        {"username": EnvRef("USERNAME"), "password": EnvRef("PASSWORD"), "realm": EnvRef("REALM")},
    )
    return s


@pytest.fixture
def system_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment for the ``my_auth_with_system`` entry."""
    monkeypatch.setenv("USERNAME", "bananauser")
    monkeypatch.setenv("PASSWORD", "banana:password")
    monkeypatch.delenv("REALM", raising=False)
    return monkeypatch
