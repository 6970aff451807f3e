"""
Structured logging for the fetch pipeline: event_type, signature, rpc, attempt.

Every line carries an ISO-8601 UTC timestamp, the level and the emitting
module. Modules call get_logger(__name__) and pass a snake_case event name
first, then keyword fields. Signatures and endpoint URLs are long (and URLs
may embed API keys), so they go through short_signature() / short_rpc()
before being logged.

LOG_LEVEL picks the minimum level (default INFO); LOG_FORMAT=json (default)
renders one JSON object per line, anything else a console layout.

Import-time configuration only sees the process environment. Values kept in
.env take effect once the entrypoint has loaded it and called
configure_logging() again. Loggers from get_logger() resolve the current
configuration on every call, so module-level loggers pick up such a
reconfiguration.

Depends only on structlog and the stdlib so any txcanon module can import it.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

import structlog
from structlog._config import BoundLoggerLazyProxy

_SIGNATURE_PREVIEW = 8
_RPC_PREVIEW = 30
_ROOT_LOGGER_NAME = "txcanon"


def _rename_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type in the output."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _level_from_env(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    file: TextIO | None = None,
) -> None:
    """
    (Re)configure structlog. Called once at import with env values; the
    runner calls it again after loading .env, tests with explicit arguments.
    Output goes to file, default stdout.
    """
    fmt = (fmt or os.getenv("LOG_FORMAT") or "json").strip().lower()
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _rename_event,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty(), event_key="event_type")
        )
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_from_env(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=file or sys.stdout),
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Structured logger for one module:

        logger = get_logger(__name__)
        logger.warning("fetch_attempt_failed", rpc=short_rpc(url), attempt=2, error="...")

    JSON line: {"attempt": 2, "error": "...", "event_type": "fetch_attempt_failed",
    "level": "warning", "logger": "txcanon.fetcher.client", "rpc": "...", "timestamp": "..."}
    """
    return BoundLoggerLazyProxy(None, initial_values={"logger": name}, logger_factory_args=(name,))


def bind_signature(signature: str) -> structlog.BoundLogger:
    """Logger with the (shortened) signature bound to every subsequent call."""
    return get_logger(_ROOT_LOGGER_NAME).bind(signature=short_signature(signature))


def short_signature(signature: str | None) -> str:
    """First characters of a signature, for log fields."""
    if not signature:
        return ""
    if len(signature) <= _SIGNATURE_PREVIEW:
        return signature
    return signature[:_SIGNATURE_PREVIEW] + "..."


def short_rpc(url: str) -> str:
    """Endpoint URL without scheme, API key masked, truncated for log fields."""
    s = url.replace("https://", "").replace("http://", "")
    if "api-key=" in s:
        s = s.split("api-key=")[0] + "api-key=***"
    return s[:_RPC_PREVIEW]
