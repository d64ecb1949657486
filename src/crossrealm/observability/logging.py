"""Structured logging setup: stdlib handlers with structlog JSON-lines or console rendering."""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import IO, Final

import structlog

from crossrealm.config.schema import LOG_FORMATS

_DEFAULT_LOGGER_NAME: Final[str] = "crossrealm"
_DEFAULT_LEVEL: Final[str] = "WARNING"
_DEFAULT_FORMAT: Final[str] = "json"

_ACTIVE_HANDLE_LOCK = threading.Lock()
_ACTIVE_HANDLE: StructuredLoggingHandle | None = None


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Configuration for structured membrane logging."""

    level: int | str = _DEFAULT_LEVEL
    fmt: str = _DEFAULT_FORMAT
    logger_name: str = _DEFAULT_LOGGER_NAME
    stream: IO[str] | None = None


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    stream: IO[str] | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Configure structured logging from an ``[observability]`` mapping and return the logger.

    Parameters
    ----------
    observability_config:
        Mapping compatible with ``[observability]`` settings in ``crossrealm.toml``.
    stream:
        Optional text stream for log lines; defaults to ``sys.stderr``.
    logger_name:
        Root logger name to configure.
    """

    cfg = dict(observability_config or {})
    raw_level = cfg.get("log_level", _DEFAULT_LEVEL)
    level: int | str = raw_level if isinstance(raw_level, (int, str)) else _DEFAULT_LEVEL
    raw_format = cfg.get("log_format", _DEFAULT_FORMAT)
    fmt = raw_format if isinstance(raw_format, str) else _DEFAULT_FORMAT

    handle = setup_structured_logging(
        LoggingConfig(level=level, fmt=fmt, logger_name=logger_name, stream=stream)
    )
    return handle.logger


class StructuredLoggingHandle:
    """Runtime handle for an active structured logging setup."""

    def __init__(self, *, logger: logging.Logger, handler: logging.Handler, fmt: str) -> None:
        self.logger = logger
        self.fmt = fmt
        self._handler = handler
        self._shutdown_lock = threading.Lock()
        self._is_shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def flush(self) -> None:
        self._handler.flush()

    def shutdown(self) -> None:
        with self._shutdown_lock:
            if self._is_shutdown:
                return
            self._handler.flush()
            self.logger.removeHandler(self._handler)
            # Never close a caller-supplied or process-wide stream.
            self._is_shutdown = True


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Route structlog events through one stdlib handler on ``config.logger_name``."""
    _shutdown_previous_active_handle()

    logger_name = _validate_logger_name(config.logger_name)
    level = _parse_log_level(config.level)
    fmt = _validate_format(config.fmt)

    handler = logging.StreamHandler(config.stream if config.stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    logger.addHandler(handler)

    renderer: structlog.types.Processor
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handle = StructuredLoggingHandle(logger=logger, handler=handler, fmt=fmt)
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        _ACTIVE_HANDLE = handle
    return handle


def shutdown_logging(handle: StructuredLoggingHandle | None = None) -> None:
    """Detach the handler and restore structlog defaults."""
    resolved = handle if handle is not None else get_active_logging_handle()
    if resolved is None:
        return

    resolved.shutdown()
    structlog.reset_defaults()

    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        if _ACTIVE_HANDLE is resolved:
            _ACTIVE_HANDLE = None


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    """Return the currently active handle, if one exists."""
    with _ACTIVE_HANDLE_LOCK:
        return _ACTIVE_HANDLE


def _shutdown_previous_active_handle() -> None:
    existing = get_active_logging_handle()
    if existing is not None:
        existing.shutdown()

    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        _ACTIVE_HANDLE = None


def _validate_logger_name(logger_name: str) -> str:
    if not isinstance(logger_name, str):
        raise ValueError(f"logger_name must be a string, got {type(logger_name).__name__}")
    normalized = logger_name.strip()
    if not normalized:
        raise ValueError("logger_name must not be empty")
    return normalized


def _validate_format(fmt: str) -> str:
    if not isinstance(fmt, str):
        raise ValueError(f"fmt must be a string, got {type(fmt).__name__}")
    normalized = fmt.strip().lower()
    if normalized not in LOG_FORMATS:
        raise ValueError(f"unsupported log format {fmt!r}; expected one of {sorted(LOG_FORMATS)}")
    return normalized


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, bool):
        raise ValueError("level must be int or str, got bool")
    if isinstance(value, int):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


__all__ = [
    "LoggingConfig",
    "StructuredLoggingHandle",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
