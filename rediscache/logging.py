"""
Structured logging configuration for rediscache.

Events are emitted on two lazily created loggers.

``rediscache.pool`` (pool and gateway):
    pool_acquire_failed          borrow raised; the operation degrades
    pool_release_failed          a healthy connection could not be returned
    pool_retire_failed           a broken connection could not be returned
    pool_connection_discarded    a broken connection's socket was dropped
    pool_close_failed            closing the pool raised
    pool_closed                  the pool was closed

``rediscache.cache`` (storage service and default client):
    storage_created              the default service was built from settings
    cache_invalid_key            empty or non-string key rejected
    cache_invalid_expire         negative or non-integer expiry rejected
    cache_connection_unavailable no connection could be acquired
    cache_transport_error        a command failed; the connection is retired
    cache_encode_error           a key or value has no JSON form
    cache_decode_error           stored text did not fit the requested shape
    cache_miss                   the key or field does not exist

Every event carries ``key`` (and ``field`` for hash operations) where one
applies. Redis passwords never reach the output: ``password`` fields and
the credential part of ``redis://`` URLs are masked before rendering.
"""

import logging
import os
import re
import sys
from collections.abc import Mapping, MutableMapping
from functools import lru_cache
from typing import Any

import structlog
from structlog.types import Processor

_URL_CREDENTIALS = re.compile(r"(rediss?://)([^@/\s]*)@")
_MASK = "***"


def _is_development() -> bool:
    """Check if running in development mode."""
    from .config import get_settings

    settings = get_settings()
    return settings.debug or os.getenv("ENV", "development") == "development"


def _add_app_context(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> Mapping[str, Any] | str | bytes | bytearray | tuple[Any, ...]:
    """Tag entries with the package name and version."""
    from . import __version__

    event_dict["app"] = "rediscache"
    event_dict["version"] = __version__
    return event_dict


def _redact_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> Mapping[str, Any] | str | bytes | bytearray | tuple[Any, ...]:
    """Mask Redis passwords in fields and connection URLs."""
    for name, value in event_dict.items():
        if name == "password" and value:
            event_dict[name] = _MASK
        elif isinstance(value, str) and "://" in value:
            event_dict[name] = _URL_CREDENTIALS.sub(rf"\g<1>{_MASK}@", value)
    return event_dict


def get_processors(development: bool | None = None) -> list[Processor]:
    """Console rendering in development, JSON lines otherwise."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_app_context,
        _redact_credentials,
    ]

    if development is None:
        development = _is_development()
    if development:
        return shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        ]
    return shared_processors + [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


@lru_cache(maxsize=1)
def configure_logging(level: str | None = None) -> None:
    """Configure structured logging. Call once at application startup."""
    if level is None:
        from .config import get_settings

        level = get_settings().log_level

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=get_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class _LazyLogger:
    """Lazy logger that defers initialization until first use."""

    def __init__(self, name: str):
        self._name = name
        self._logger: structlog.stdlib.BoundLogger | None = None

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        if self._logger is None:
            self._logger = get_logger(self._name)
        return self._logger

    def __getattr__(self, name: str):
        return getattr(self._get_logger(), name)


# Module loggers, resolved on first use so importing rediscache never
# configures logging by itself
pool_logger = _LazyLogger("rediscache.pool")
cache_logger = _LazyLogger("rediscache.cache")


__all__ = [
    "configure_logging",
    "get_logger",
    "get_processors",
    "pool_logger",
    "cache_logger",
]
