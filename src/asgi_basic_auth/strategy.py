"""Authentication strategies, built once per middleware by :func:`asgi_basic_auth.config.resolve`."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from asgi_basic_auth.config import DEFAULT_REALM, ConfigValue, CredentialLookupError, resolve_value

if TYPE_CHECKING:
    from asgi_basic_auth.conn import Conn

KeyCallbackFn = Callable[["Conn", str], Optional["Conn"]]
UsernamePasswordCallbackFn = Callable[["Conn", str, str], Optional["Conn"]]


def _realm(value: ConfigValue) -> str:
    return resolve_value(value) or DEFAULT_REALM


def _required(value: ConfigValue, part: str, source: object) -> str:
    resolved = resolve_value(value)
    if resolved is None:
        raise CredentialLookupError(f"Missing {part!r} or 'key' from {source!r}")
    return resolved


@dataclass(frozen=True)
class StaticCredentials:
    """Username and password compared against the first-colon split of the payload."""

    username: ConfigValue
    password: ConfigValue
    realm: ConfigValue = None
    source: object = None

    def resolve_realm(self) -> str:
        return _realm(self.realm)

    def credentials(self) -> tuple[str, str]:
        """Return the configured ``(username, password)``, reading env refs now.

        Raises:
            CredentialLookupError: If either part resolves to nothing.
        """
        return (
            _required(self.username, "username", self.source),
            _required(self.password, "password", self.source),
        )


@dataclass(frozen=True)
class KeyCredentials:
    """Opaque key compared against the undivided decoded payload.

    When ``key`` resolves to nothing at request time and a username and
    password are configured, ``"username:password"`` is expected instead.
    """

    key: ConfigValue
    realm: ConfigValue = None
    username: ConfigValue = None
    password: ConfigValue = None
    source: object = None

    def resolve_realm(self) -> str:
        return _realm(self.realm)

    def expected_key(self) -> str:
        """Return the key to compare against, reading env refs now.

        Raises:
            CredentialLookupError: If neither the key nor both username and
                password resolve.
        """
        key = resolve_value(self.key)
        if key is not None:
            return key
        if self.username is None and self.password is None:
            raise CredentialLookupError(f"Missing 'key' from {self.source!r}")
        username = _required(self.username, "username", self.source)
        password = _required(self.password, "password", self.source)
        return f"{username}:{password}"


@dataclass(frozen=True)
class UsernamePasswordCallback:
    """Delegates to ``callback(conn, username, password)``."""

    callback: UsernamePasswordCallbackFn
    realm: str | None = None

    def resolve_realm(self) -> str:
        return self.realm or DEFAULT_REALM


@dataclass(frozen=True)
class KeyCallback:
    """Delegates to ``callback(conn, key)`` with the undivided decoded payload."""

    callback: KeyCallbackFn
    realm: str | None = None

    def resolve_realm(self) -> str:
        return self.realm or DEFAULT_REALM


Strategy = Union[StaticCredentials, KeyCredentials, UsernamePasswordCallback, KeyCallback]
