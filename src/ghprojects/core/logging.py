"""Structured logging infrastructure for ghprojects.

Provides structured logging using structlog with session context such as
the active owner and project. The interactive view owns the terminal, so
the TUI normally logs to a rotating file and keeps stderr for warnings.

Example usage:
    from ghprojects.core.logging import get_logger, configure_logging, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="json", file_path=Path("ghprojects.log"))

    # Get a component-specific logger
    logger = get_logger("dispatcher")

    # Log with auto-context
    logger.info("dispatcher.started", request_id=5)

    # Bind context for a scope
    ctx = SessionContext(owner="octo-org")
    with with_context(ctx):
        logger.info("projects_loaded")  # Includes owner and session_id
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Sensitive field patterns that should never be logged
SENSITIVE_PATTERNS = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "bearer",
    "authorization",
    "api_key",
})

LogFormat = Literal["json", "console", "both"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

_current_log_path: Path | None = None


def get_current_log_path() -> Path | None:
    """Get the currently configured log file path, or None without file logging."""
    return _current_log_path


def get_default_log_path() -> Path:
    """Default log location: ``~/.local/state/ghprojects/ghprojects.log``."""
    return Path.home() / ".local" / "state" / "ghprojects" / "ghprojects.log"


@dataclass(frozen=True)
class SessionContext:
    """Immutable context for correlating log entries across a session.

    Attributes:
        session_id: Unique id for one interactive session.
        owner: Login of the owner whose projects are being browsed.
        project_id: Node id of the open project, if any.
        component: Component name for the current operation.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    owner: str | None = None
    project_id: str | None = None
    component: str = "unknown"

    def with_owner(self, owner: str) -> SessionContext:
        return replace(self, owner=owner, project_id=None)

    def with_project(self, project_id: str | None) -> SessionContext:
        return replace(self, project_id=project_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging (excludes None values)."""
        result: dict[str, Any] = {
            "session_id": self.session_id,
            "component": self.component,
        }
        if self.owner is not None:
            result["owner"] = self.owner
        if self.project_id is not None:
            result["project_id"] = self.project_id
        return result


# Using ContextVar ensures proper isolation between asyncio tasks
_current_context: ContextVar[SessionContext | None] = ContextVar(
    "ghprojects_context", default=None
)


def get_current_context() -> SessionContext | None:
    return _current_context.get()


def set_context(ctx: SessionContext) -> None:
    """Set the current SessionContext. Prefer ``with_context()``."""
    _current_context.set(ctx)


def clear_context() -> None:
    _current_context.set(None)


@contextmanager
def with_context(ctx: SessionContext) -> Iterator[SessionContext]:
    """Set the SessionContext for the duration of a block.

    Tasks created inside the block copy the context, so log calls made by
    dispatched workers carry the owner/project of the session that spawned them.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields, one level deep."""
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {
                k: _sanitize_value(k, v) for k, v in value.items()
            }
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that merges SessionContext fields into log entries.

    Explicitly bound keys take precedence over context values.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            if key not in event_dict:
                event_dict[key] = value
    return event_dict


class AppLogger:
    """Component-bound logger wrapper around structlog.

    Uses lazy logger lookup so that loggers created at module import time
    still respect configuration applied later via configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> AppLogger:
        """Create a new logger with additional bound context."""
        new_logger = AppLogger.__new__(AppLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def unbind(self, *keys: str) -> AppLogger:
        """Create a new logger with the given keys removed."""
        new_logger = AppLogger.__new__(AppLogger)
        new_logger._component = self._component
        new_logger._context = {k: v for k, v in self._context.items() if k not in keys}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an exception with traceback. Call from inside an except block."""
        self._get_logger().exception(event, **kw)


def _build_processors(renderer: Processor, include_timestamps: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
        _add_context,
    ]
    if include_timestamps:
        processors.append(_add_timestamp)
    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
) -> None:
    """Configure structured logging. Call once at startup.

    Args:
        level: Minimum log level to capture.
        format: "console" for human-readable stderr output, "json" for
            structured output (to file_path, or stdout without one), "both"
            for console to stderr and JSON to file_path.
        file_path: Log file path. Required when format="both".
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to include ISO8601 timestamps.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    global _current_log_path

    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        handlers.append(console_handler)

    if format in ("json", "both"):
        if file_path is not None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            _current_log_path = file_path
            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            handlers.append(file_handler)
        else:
            json_handler = logging.StreamHandler(sys.stdout)
            json_handler.setLevel(log_level)
            handlers.append(json_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    renderer: Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    # cache_logger_on_first_use=False keeps import-time loggers in sync with
    # configuration applied later
    structlog.configure(
        processors=_build_processors(renderer, include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> AppLogger:
    """Get a logger bound to a component name (e.g. "retry", "controller")."""
    return AppLogger(component, **initial_context)


__all__ = [
    "AppLogger",
    "LogFormat",
    "LogLevel",
    "SENSITIVE_PATTERNS",
    "SessionContext",
    "clear_context",
    "configure_logging",
    "get_current_context",
    "get_current_log_path",
    "get_default_log_path",
    "get_logger",
    "set_context",
    "with_context",
]
