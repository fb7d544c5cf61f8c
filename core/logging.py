# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Core - Structured logging and the ping log channel
# PURPOSE: Consistent diagnostics logging plus slow/warning/error ping lines
# CREATED: 12 OCT 2026
# ============================================================================
"""
Structured Logging

Two separate concerns live here:

1. Diagnostics logging for the service itself (configure_logging,
   get_logger). JSON output for log aggregation, human output for
   development.

2. The ping log channel (PingLogger). Every warning, error and slow
   probe is written as one line:

       ping: <category>: <name>: <message>

   The sink depends on the environment: stderr on container platforms,
   syslog (facility LOCAL6) everywhere else.

Usage:
    from core.logging import get_logger, get_ping_logger, log_context

    logger = get_logger("health.app")

    with log_context(probe="memcache"):
        logger.info("Probe finished")

    ping_logger = get_ping_logger(defaults.log_sink)
    ping_logger.log("error", "db", '{"message":"..."}')
"""

import json
import logging
import logging.handlers
import os
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from core.config.defaults import LogSink


@dataclass
class LogContext:
    """
    Context for structured logging.

    Thread-local storage for contextual fields.
    """
    probe: Optional[str] = None
    mode: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None values."""
        result = {}
        for key, value in asdict(self).items():
            if value is not None and key != "extra":
                result[key] = value
        if self.extra:
            result.update(self.extra)
        return result


# Thread-local context storage
_context_stack = threading.local()


def _get_context_stack() -> list:
    """Get thread-local context stack."""
    if not hasattr(_context_stack, "stack"):
        _context_stack.stack = []
    return _context_stack.stack


def get_current_context() -> LogContext:
    """Get current logging context."""
    stack = _get_context_stack()
    if stack:
        return stack[-1]
    return LogContext()


@contextmanager
def log_context(**kwargs):
    """
    Context manager for adding logging context.

    Example:
        with log_context(probe="redis"):
            logger.debug("Connecting")
    """
    parent = get_current_context()
    new_context = LogContext(
        probe=kwargs.get("probe", parent.probe),
        mode=kwargs.get("mode", parent.mode),
        extra={**parent.extra, **kwargs.get("extra", {})},
    )

    stack = _get_context_stack()
    stack.append(new_context)
    try:
        yield new_context
    finally:
        stack.pop()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON for easy parsing by log aggregators.
    """

    def __init__(self, include_context: bool = True):
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": _utcnow().isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            context_dict = get_current_context().to_dict()
            if context_dict:
                log_data["context"] = context_dict

        if hasattr(record, "extra") and record.extra:
            log_data["data"] = record.extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["source"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

    Includes context fields inline for easy reading.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human reading."""
        timestamp = _utcnow().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.ljust(8)

        context = get_current_context()
        context_str = f" [probe={context.probe}]" if context.probe else ""

        result = f"{timestamp} {level} {record.name}{context_str}: {record.getMessage()}"

        if record.exc_info:
            result += f"\n{self.formatException(record.exc_info)}"

        return result


def get_logger(name: str) -> logging.Logger:
    """Get a diagnostics logger."""
    return logging.getLogger(name)


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure diagnostics logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON format (for production)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_output or os.getenv("LOG_FORMAT", "").lower() == "json":
        formatter = StructuredFormatter(include_context=True)
    else:
        formatter = HumanFormatter()

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    # stdout is the response body in CLI mode, keep diagnostics off it
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


# ============================================================================
# PING LOG CHANNEL
# ============================================================================

PING_LOGGER_NAME = "ping"

_SYSLOG_ADDRESSES = ("/dev/log", "/var/run/syslog")


def _syslog_handler() -> Optional[logging.Handler]:
    """Syslog handler on the local socket, or None if there is none."""
    for address in _SYSLOG_ADDRESSES:
        if not os.path.exists(address):
            continue
        try:
            return logging.handlers.SysLogHandler(
                address=address,
                facility=logging.handlers.SysLogHandler.LOG_LOCAL6,
            )
        except OSError:
            continue
    return None


class PingLogger:
    """
    Writes ping log lines through a dedicated stdlib logger.

    The wrapped logger does not propagate, so ping lines only reach
    the chosen sink and never mix with diagnostics output.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def log(self, category: str, name: str, message: str) -> None:
        """Emit one line for one item."""
        self._logger.error("ping: %s: %s: %s", category, name, message)


def build_ping_logger(sink: LogSink, name: str = PING_LOGGER_NAME) -> logging.Logger:
    """Create (or reconfigure) the stdlib logger behind the ping channel."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.ERROR)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    handler: Optional[logging.Handler] = None
    if sink == LogSink.SYSLOG:
        handler = _syslog_handler()
        if handler is None:
            logging.getLogger(__name__).warning(
                "No syslog socket available, ping log falls back to stderr"
            )

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


_ping_loggers: Dict[LogSink, PingLogger] = {}


def get_ping_logger(sink: LogSink) -> PingLogger:
    """Get the ping log channel for the given sink (built once per process)."""
    sink = LogSink(sink)
    if sink not in _ping_loggers:
        _ping_loggers[sink] = PingLogger(
            build_ping_logger(sink, name=f"{PING_LOGGER_NAME}.{sink.value}")
        )
    return _ping_loggers[sink]


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "PingLogger",
    "build_ping_logger",
    "get_ping_logger",
    "PING_LOGGER_NAME",
]
