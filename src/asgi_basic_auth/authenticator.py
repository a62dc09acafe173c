"""Per-request Basic authentication decision.

:func:`call` reads the ``Authorization`` header from a :class:`Conn`,
checks it against a strategy and either returns the conn untouched
(accepted) or marks it as a halted ``401 Unauthorized`` response via
:func:`reject`. Malformed input never raises; it is rejected.
"""

from __future__ import annotations

import base64
import binascii
import logging

from asgi_basic_auth.conn import Conn
from asgi_basic_auth.strategy import (
    KeyCallback,
    KeyCredentials,
    StaticCredentials,
    Strategy,
    UsernamePasswordCallback,
)

logger = logging.getLogger(__name__)

BASIC_PREFIX = "Basic "
UNAUTHORIZED_BODY = "401 Unauthorized"


def reject(conn: Conn, realm: str) -> Conn:
    """Turn ``conn`` into a halted 401 challenge for ``realm``."""
    return (
        conn.put_resp_header("www-authenticate", f'Basic realm="{realm}"')
        .send_resp(401, UNAUTHORIZED_BODY)
        .halt()
    )


def decode_credentials(values: list[str]) -> str | None:
    """Return the decoded Basic payload, or None if the header is unusable.

    Exactly one header value is accepted, it must start with ``"Basic "``
    and the rest must be padded standard Base64 of UTF-8 text.
    """
    if len(values) != 1:
        return None
    header = values[0]
    if not header.startswith(BASIC_PREFIX):
        return None
    try:
        raw = base64.b64decode(header[len(BASIC_PREFIX) :], validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def call(conn: Conn, strategy: Strategy) -> Conn:
    """Authenticate ``conn`` with ``strategy``.

    Returns:
        The conn (or the callback's conn) unchanged on success; a halted
        401 conn otherwise.

    Raises:
        CredentialLookupError: If configured credentials resolve to nothing.
    """
    payload = decode_credentials(conn.get_req_header("authorization"))
    if payload is None:
        logger.debug("Missing or malformed Authorization header for %s", conn.path)
        return reject(conn, strategy.resolve_realm())

    if isinstance(strategy, StaticCredentials):
        username, sep, password = payload.partition(":")
        if sep and (username, password) == strategy.credentials():
            return conn
        logger.debug("Credentials mismatch for %s", conn.path)
        return reject(conn, strategy.resolve_realm())

    if isinstance(strategy, KeyCredentials):
        if payload == strategy.expected_key():
            return conn
        logger.debug("Key mismatch for %s", conn.path)
        return reject(conn, strategy.resolve_realm())

    if isinstance(strategy, UsernamePasswordCallback):
        username, sep, password = payload.partition(":")
        if not sep:
            logger.debug("No username/password separator for %s", conn.path)
            return reject(conn, strategy.resolve_realm())
        return _check_callback_result(strategy.callback(conn, username, password), conn, strategy)

    if isinstance(strategy, KeyCallback):
        return _check_callback_result(strategy.callback(conn, payload), conn, strategy)

    raise TypeError(f"Unsupported strategy: {type(strategy).__name__}")


def _check_callback_result(
    result: Conn | None,
    conn: Conn,
    strategy: UsernamePasswordCallback | KeyCallback,
) -> Conn:
    """Reject a halted callback result; pass anything else through."""
    if result is None:
        result = conn
    if result.halted:
        logger.debug("Callback halted request for %s", result.path)
        return reject(result, strategy.resolve_realm())
    return result
