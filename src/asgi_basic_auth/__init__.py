"""asgi-basic-auth: HTTP Basic authentication middleware for ASGI applications."""

from __future__ import annotations

from asgi_basic_auth.authenticator import call, reject
from asgi_basic_auth.config import (
    DEFAULT_REALM,
    ConfigStore,
    ConfigurationError,
    CredentialLookupError,
    EnvRef,
    default_store,
    parse_config_value,
    resolve,
    resolve_value,
)
from asgi_basic_auth.conn import Conn
from asgi_basic_auth.middleware import BasicAuthMiddleware, auth_assigns_var
from asgi_basic_auth.strategy import (
    KeyCallback,
    KeyCredentials,
    StaticCredentials,
    Strategy,
    UsernamePasswordCallback,
)

__all__ = [
    # Middleware
    "BasicAuthMiddleware",
    "auth_assigns_var",
    # Authenticator
    "Conn",
    "call",
    "reject",
    # Configuration
    "resolve",
    "resolve_value",
    "parse_config_value",
    "ConfigStore",
    "default_store",
    "EnvRef",
    "DEFAULT_REALM",
    # Strategies
    "Strategy",
    "StaticCredentials",
    "KeyCredentials",
    "UsernamePasswordCallback",
    "KeyCallback",
    # Errors
    "ConfigurationError",
    "CredentialLookupError",
]

__version__ = "0.1.0"
