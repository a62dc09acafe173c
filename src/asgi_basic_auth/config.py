"""Configuration resolver: setup options → authentication strategy.

Setup takes exactly one of two forms:

* ``use_config=(namespace, key)`` -- credentials live in a
  :class:`ConfigStore` entry with optional ``username``, ``password``,
  ``key`` and ``realm`` fields. Each field is either a literal string or an
  :class:`EnvRef` naming an environment variable.
* ``callback=fn`` (optionally with ``realm=...``) -- ``fn`` takes either
  ``(conn, key)`` or ``(conn, username, password)`` and returns the conn,
  halted if authentication failed.

Environment references are read on every lookup, so changing the
environment between requests changes the accepted credentials without a
restart.
"""

from __future__ import annotations

import inspect
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from asgi_basic_auth.strategy import Strategy

logger = logging.getLogger(__name__)

DEFAULT_REALM = "Basic Authentication"

_ENV_PREFIX = "env:"

_USAGE = """
Usage of BasicAuthMiddleware using application config:
    BasicAuthMiddleware(app, use_config=("your_app", "your_config"))

-OR-
Using a custom authentication function:
    BasicAuthMiddleware(app, callback=my_custom_function)

Where callback takes either
* a conn, username and password and returns a conn
* a conn and a key and returns a conn
"""

_ENTRY_FIELDS = frozenset({"username", "password", "key", "realm"})


class ConfigurationError(ValueError):
    """Raised at setup time for missing, ambiguous or invalid options."""


class CredentialLookupError(LookupError):
    """Raised at request time when a required credential resolves to nothing."""


@dataclass(frozen=True)
class EnvRef:
    """Reference to an environment variable, resolved at read time."""

    name: str

    def __str__(self) -> str:
        return f"{_ENV_PREFIX}{self.name}"


ConfigValue = Union[str, EnvRef, None]


def resolve_value(value: ConfigValue) -> str | None:
    """Return the literal, or the current value of the referenced env var.

    Empty strings are normalized to ``None`` so callers only have one
    "absent" case to handle.
    """
    if isinstance(value, EnvRef):
        value = os.environ.get(value.name)
    return value or None


def parse_config_value(raw: str | None) -> ConfigValue:
    """Parse ``"env:NAME"`` into an :class:`EnvRef`; anything else is literal."""
    if raw is None:
        return None
    if raw.startswith(_ENV_PREFIX):
        name = raw[len(_ENV_PREFIX) :]
        if not name:
            raise ConfigurationError(f"Missing environment variable name in {raw!r}")
        return EnvRef(name)
    return raw


class ConfigStore:
    """In-memory application configuration store keyed by (namespace, key).

    Stands in for an application-wide settings registry. Entries are stored
    as given; values are only interpreted when a strategy reads them.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], Mapping[str, ConfigValue]] = {}

    def put_env(self, namespace: str, key: str, entry: Mapping[str, ConfigValue]) -> None:
        """Store (or replace) the entry for ``(namespace, key)``."""
        unknown = set(entry) - _ENTRY_FIELDS
        if unknown:
            raise ConfigurationError(
                f"Unknown field(s) {sorted(unknown)} for {(namespace, key)!r}; expected {sorted(_ENTRY_FIELDS)}"
            )
        self._entries[(namespace, key)] = dict(entry)

    def fetch_env(self, namespace: str, key: str) -> Mapping[str, ConfigValue]:
        """Return the entry for ``(namespace, key)``.

        Raises:
            ConfigurationError: If no entry exists.
        """
        try:
            return self._entries[(namespace, key)]
        except KeyError:
            raise ConfigurationError(f"No configuration found for {(namespace, key)!r}") from None

    def delete_env(self, namespace: str, key: str) -> None:
        self._entries.pop((namespace, key), None)


default_store = ConfigStore()


def callback_arity(callback: Callable[..., Any]) -> int:
    """Count the positional parameters ``callback`` accepts.

    Returns -1 for callables that take ``*args``, which have no fixed arity.
    """
    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Cannot inspect callback {callback!r}: {exc}") from exc

    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return -1
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            if param.default is inspect.Parameter.empty:
                count += 1
    return count


def resolve(
    *,
    use_config: tuple[str, str] | None = None,
    callback: Callable[..., Any] | None = None,
    realm: str | None = None,
    store: ConfigStore | None = None,
) -> Strategy:
    """Build the strategy for one middleware instance.

    Args:
        use_config: ``(namespace, key)`` of an entry in ``store``.
        callback: Authentication function of arity 2 or 3.
        realm: Realm for callback strategies. Ignored with ``use_config``,
            where the realm comes from the store entry.
        store: Configuration store to read ``use_config`` from. Defaults to
            the process-wide :data:`default_store`.

    Returns:
        One of the strategies in :mod:`asgi_basic_auth.strategy`.

    Raises:
        ConfigurationError: If the options are missing, ambiguous or invalid.
    """
    from asgi_basic_auth.strategy import (
        KeyCallback,
        KeyCredentials,
        StaticCredentials,
        UsernamePasswordCallback,
    )

    if (use_config is None) == (callback is None):
        raise ConfigurationError(_USAGE)

    if callback is not None:
        if not callable(callback):
            raise ConfigurationError(f"callback must be callable, got {type(callback).__name__}")
        arity = callback_arity(callback)
        if arity == 2:
            return KeyCallback(callback=callback, realm=realm)
        if arity == 3:
            return UsernamePasswordCallback(callback=callback, realm=realm)
        raise ConfigurationError(
            "Callback must be of arity 2 (for connection and key) "
            "or 3 (for connection, username, and password)."
        )

    if not isinstance(use_config, tuple) or len(use_config) != 2:
        raise ConfigurationError(f"use_config must be a (namespace, key) pair, got {use_config!r}")

    entry = (store if store is not None else default_store).fetch_env(*use_config)
    if entry.get("key") is not None:
        logger.debug("Using key credentials from %r", use_config)
        return KeyCredentials(
            key=entry["key"],
            realm=entry.get("realm"),
            username=entry.get("username"),
            password=entry.get("password"),
            source=use_config,
        )
    if entry.get("username") is None or entry.get("password") is None:
        raise ConfigurationError(f"Missing 'username' and 'password' or 'key' in {use_config!r}")
    logger.debug("Using username/password credentials from %r", use_config)
    return StaticCredentials(
        username=entry["username"],
        password=entry["password"],
        realm=entry.get("realm"),
        source=use_config,
    )
