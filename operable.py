#!/usr/bin/env python3
"""
Operable: GCP/Kubernetes incident-response tool server.

Usage:
    operable                       Serve the tools over MCP on stdin/stdout
    operable serve [options]       Serve the tools over MCP
        --mode stdio|sse           Transport (default: stdio)
        --addr HOST:PORT           Listen address in SSE mode (default: :8080)
        --base-url URL             Public base URL in SSE mode (default: http://localhost:8080)
    operable tools                 List the registered tools
    operable call TOOL [JSON]      Invoke one tool with a JSON object of arguments

Credentials come from GOOGLE_APPLICATION_CREDENTIALS, or from
GOOGLE_CLIENT_ID + GOOGLE_CLIENT_SECRET (+ GOOGLE_REFRESH_TOKEN).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from toolcore.dispatch import Dispatcher
from toolcore.errors import ConfigurationError, StartupError

SERVER_NAME = "GCP/K8s Incident Response"
SERVER_VERSION = "0.1.0"

# The directory where Operable keeps its config file.
OPERABLE_DIR = Path.home() / ".operable"
_CONFIG_FILE = OPERABLE_DIR / "config.json"

_MODES = ("stdio", "sse")
_KNOWN_COMMANDS = ("serve", "tools", "call")

logger = logging.getLogger("operable")


# ---------------------------------------------------------------------------
# Configuration: flags > environment > config file > defaults
# ---------------------------------------------------------------------------

@dataclass
class Settings:
    mode: str = "stdio"
    addr: str = ":8080"
    base_url: str = "http://localhost:8080"
    call_timeout: float = 120.0
    request_timeout: float = 30.0


def _load_config(path: Path | None = None) -> dict:
    """Load the JSON config file; a missing or unreadable file is ignored."""
    path = path or _CONFIG_FILE
    if path.exists():
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable config file %s", path)
            return {}
        if isinstance(data, dict):
            return data
    return {}


def _positive_seconds(name: str, value: object) -> float:
    try:
        seconds = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}") from None
    if seconds <= 0:
        raise ConfigurationError(f"{name} must be greater than 0, got {value!r}")
    return seconds


def parse_serve_flags(args: list[str]) -> dict:
    """Parse ``--mode``, ``--addr`` and ``--base-url`` (``--flag value`` or ``--flag=value``)."""
    flags = {"--mode": "mode", "--addr": "addr", "--base-url": "base_url"}
    parsed: dict = {}
    i = 0
    while i < len(args):
        arg = args[i]
        name, sep, value = arg.partition("=")
        if name not in flags:
            raise ConfigurationError(f"Unknown option: {arg}")
        if not sep:
            if i + 1 >= len(args):
                raise ConfigurationError(f"Option {name} requires a value")
            i += 1
            value = args[i]
        parsed[flags[name]] = value
        i += 1
    return parsed


def resolve_settings(
    flags: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    file_config: Mapping | None = None,
) -> Settings:
    flags = flags or {}
    env = os.environ if environ is None else environ
    cfg = _load_config() if file_config is None else file_config
    settings = Settings()

    for key in ("mode", "addr", "base_url"):
        value = flags.get(key) or cfg.get(key)
        if value:
            setattr(settings, key, str(value))

    call_timeout = env.get("OPERABLE_CALL_TIMEOUT") or cfg.get("call_timeout_seconds")
    if call_timeout is not None:
        settings.call_timeout = _positive_seconds("call timeout", call_timeout)
    request_timeout = env.get("OPERABLE_REQUEST_TIMEOUT") or cfg.get("request_timeout_seconds")
    if request_timeout is not None:
        settings.request_timeout = _positive_seconds("request timeout", request_timeout)

    if settings.mode not in _MODES:
        raise ConfigurationError(
            f"Unknown mode: {settings.mode}. Supported modes are 'stdio' and 'sse'."
        )
    return settings


def configure_logging(environ: Mapping[str, str] | None = None) -> None:
    """Log to stderr so nothing interferes with the protocol stream on stdout."""
    env = os.environ if environ is None else environ
    level = logging.getLevelName(env.get("OPERABLE_LOG_LEVEL", "WARNING").upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(name)s: %(message)s", stream=sys.stderr)


def build_dispatcher(settings: Settings, environ: Mapping[str, str] | None = None) -> Dispatcher:
    """Resolve credentials, register every tool and return a ready dispatcher.

    Raises ``StartupError`` when credentials are missing or a capability
    area fails to register.
    """
    from gcptools import AuthHandler, build_registry

    auth = AuthHandler.from_env(environ)
    registry = build_registry(auth, request_timeout=settings.request_timeout)
    logger.info("Registered %d tools", len(registry))
    return Dispatcher(registry, default_timeout=settings.call_timeout)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    """Dispatch to the appropriate sub-command."""
    args = sys.argv[1:] if argv is None else argv
    configure_logging()

    if args and args[0] in ("-h", "--help", "help"):
        print(__doc__)
        return

    try:
        if not args or args[0].startswith("--"):
            _cmd_serve(args)
        elif args[0] == "serve":
            _cmd_serve(args[1:])
        elif args[0] == "tools":
            _cmd_tools()
        elif args[0] == "call":
            _cmd_call(args[1:])
        else:
            print(f"Unknown command: {args[0]}", file=sys.stderr)
            print(__doc__, file=sys.stderr)
            sys.exit(1)
    except StartupError as exc:
        print(f"\033[1;31mError:\033[0m {exc}", file=sys.stderr)
        sys.exit(1)


# ---------------------------------------------------------------------------
# operable serve
# ---------------------------------------------------------------------------

def _cmd_serve(args: list[str]) -> None:
    settings = resolve_settings(parse_serve_flags(args))
    dispatcher = build_dispatcher(settings)

    from toolcore.server import build_server, parse_listen_address, serve_sse, serve_stdio

    server = build_server(
        dispatcher, SERVER_NAME, version=SERVER_VERSION, call_timeout=settings.call_timeout
    )
    print(
        f"Starting {SERVER_NAME} v{SERVER_VERSION} MCP server in {settings.mode} mode...",
        file=sys.stderr,
    )

    if settings.mode == "stdio":
        import anyio

        try:
            anyio.run(serve_stdio, server)
        except KeyboardInterrupt:
            pass
        return

    try:
        parse_listen_address(settings.addr)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    print(f"SSE server listening on {settings.addr}", file=sys.stderr)
    print(f"Base URL: {settings.base_url}", file=sys.stderr)
    serve_sse(server, settings.addr)


# ---------------------------------------------------------------------------
# operable tools / operable call
# ---------------------------------------------------------------------------

def _cmd_tools() -> None:
    dispatcher = build_dispatcher(resolve_settings())
    for definition in dispatcher.registry.definitions():
        print(f"{definition.name}: {definition.description}")
        for spec in definition.parameters:
            marker = "required" if spec.required else f"default: {spec.default}"
            print(f"    {spec.name} ({spec.kind.value}, {marker}) {spec.description}")


def _cmd_call(args: list[str]) -> None:
    if not args:
        raise ConfigurationError("Usage: operable call TOOL [JSON]")
    tool_name = args[0]
    arguments: dict = {}
    if len(args) > 1:
        try:
            arguments = json.loads(args[1])
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Arguments must be a JSON object: {exc}") from exc
        if not isinstance(arguments, dict):
            raise ConfigurationError("Arguments must be a JSON object")

    dispatcher = build_dispatcher(resolve_settings())
    result = dispatcher.invoke(tool_name, arguments)
    if result.is_error:
        print(f"\033[1;31mError:\033[0m {result.text_content}", file=sys.stderr)
        sys.exit(1)
    print(result.text_content, end="" if result.text_content.endswith("\n") else "\n")


if __name__ == "__main__":
    main()
