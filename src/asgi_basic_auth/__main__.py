"""CLI entry point: python -m asgi_basic_auth."""

from __future__ import annotations

import argparse
import logging
import sys

from asgi_basic_auth.config import ConfigStore, ConfigurationError, parse_config_value, resolve
from asgi_basic_auth.server import serve

logger = logging.getLogger(__name__)

_NAMESPACE = "asgi_basic_auth"
_CONFIG_KEY = "cli"


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the asgi-basic-auth CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m asgi_basic_auth",
        description="Serve a demo app protected by HTTP Basic authentication.",
        epilog="Credential values of the form env:NAME are read from the environment on every request.",
    )

    # Credentials
    parser.add_argument("--username", default=None, help="Expected username (or env:NAME).")
    parser.add_argument("--password", default=None, help="Expected password (or env:NAME).")
    parser.add_argument(
        "--key",
        default=None,
        help='Expected raw "username:password" key (or env:NAME). Takes precedence over --username/--password.',
    )
    parser.add_argument(
        "--realm",
        default=None,
        help='Realm sent in the challenge (or env:NAME; default: "Basic Authentication").',
    )

    # Server options
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host address (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port (default: 8000, range: 1-65535).",
    )
    parser.add_argument(
        "--exempt-paths",
        default="/health",
        help="Comma-separated paths exempt from auth (default: /health).",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Logging level (default: INFO).",
    )

    return parser


def _validate_port(port: int, parser: argparse.ArgumentParser) -> None:
    """Validate port is in range 1-65535."""
    if port < 1 or port > 65535:
        parser.error(f"--port must be in range 1-65535, got {port}")


def main() -> None:
    """CLI entry point for the demo server.

    Exit codes:
        0 - Normal shutdown
        1 - Invalid credentials configuration
        2 - Startup failure (argparse error, serve() exception)
    """
    parser = _build_parser()
    args = parser.parse_args()

    _validate_port(args.port, parser)

    if args.key is None and (args.username is None or args.password is None):
        print("Error: provide --key, or both --username and --password.", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    store = ConfigStore()
    try:
        store.put_env(
            _NAMESPACE,
            _CONFIG_KEY,
            {
                "username": parse_config_value(args.username),
                "password": parse_config_value(args.password),
                "key": parse_config_value(args.key),
                "realm": parse_config_value(args.realm),
            },
        )
        strategy = resolve(use_config=(_NAMESPACE, _CONFIG_KEY), store=store)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    logger.info("Using %s", type(strategy).__name__)

    exempt_paths = {p.strip() for p in args.exempt_paths.split(",") if p.strip()}

    try:
        serve(
            strategy,
            host=args.host,
            port=args.port,
            exempt_paths=exempt_paths,
            log_level=args.log_level.lower(),
        )
    except Exception:
        logger.exception("Server startup failed.")
        sys.exit(2)


if __name__ == "__main__":
    main()
