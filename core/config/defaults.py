# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for probe timeouts, marker files, logging
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the ping endpoint.
These can be overridden via environment variables.

Design:
- Immutable dataclass for defaults
- Environment variable overrides
- Type-safe access

Host application settings (database, memcache, redis, elasticsearch)
are NOT defined here: they are loaded from the settings file by the
bootstrap probe (see core.models.settings).
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LogSink(str, Enum):
    """Where ping log lines (slow/warning/error) are written."""
    STDERR = "stderr"
    SYSLOG = "syslog"


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    return float(value)


def _default_log_sink() -> LogSink:
    """
    Pick the log sink for the environment.

    Container platforms (Silta, Lando) collect stderr, everything
    else gets syslog.
    """
    explicit = os.getenv("PING_LOG_SINK", "").strip().lower()
    if explicit:
        return LogSink(explicit)
    if os.getenv("SILTA_CLUSTER") or os.getenv("LANDO"):
        return LogSink.STDERR
    return LogSink.SYSLOG


@dataclass(frozen=True)
class PingDefaults:
    """
    Defaults for the ping endpoint.

    Controls where the host application lives, probe timeouts,
    marker file housekeeping and logging.
    """
    # Host application
    app_root: str = "."
    settings_file: str = "settings.yaml"
    custom_hook_file: str = "_ping_custom.py"

    # Timeouts (seconds)
    memcache_timeout: float = 1.0
    redis_timeout: float = 2.0
    elasticsearch_timeout: float = 2.0
    db_connect_timeout: int = 2

    # Overall wall-clock budget for the whole probe sequence (None = no budget)
    deadline_seconds: Optional[float] = None

    # Slow probe threshold (milliseconds)
    slow_threshold_ms: float = 1000.0

    # Marker files
    marker_prefix: str = "status_check_"
    marker_retention_seconds: int = 3600  # 1 hour
    clock_drift_seconds: int = 5

    # Logging
    log_sink: LogSink = LogSink.SYSLOG
    log_level: str = "INFO"
    log_format: str = "human"

    @property
    def settings_path(self) -> str:
        """Settings file, resolved against the application root."""
        return os.path.join(self.app_root, self.settings_file)

    @property
    def custom_hook_path(self) -> str:
        """Custom hook file, resolved against the application root."""
        return os.path.join(self.app_root, self.custom_hook_file)

    @classmethod
    def from_env(cls) -> "PingDefaults":
        """Create from environment variables."""
        return cls(
            app_root=os.getenv("PING_APP_ROOT", "."),
            settings_file=os.getenv("PING_SETTINGS_FILE", "settings.yaml"),
            custom_hook_file=os.getenv("PING_CUSTOM_HOOK_FILE", "_ping_custom.py"),
            memcache_timeout=float(os.getenv("PING_MEMCACHE_TIMEOUT", 1.0)),
            redis_timeout=float(os.getenv("PING_REDIS_TIMEOUT", 2.0)),
            elasticsearch_timeout=float(os.getenv("PING_ELASTICSEARCH_TIMEOUT", 2.0)),
            db_connect_timeout=int(os.getenv("PING_DB_CONNECT_TIMEOUT", 2)),
            deadline_seconds=_optional_float("PING_DEADLINE_SECONDS"),
            slow_threshold_ms=float(os.getenv("PING_SLOW_THRESHOLD_MS", 1000)),
            marker_retention_seconds=int(os.getenv("PING_MARKER_RETENTION_SECONDS", 3600)),
            clock_drift_seconds=int(os.getenv("PING_CLOCK_DRIFT_SECONDS", 5)),
            log_sink=_default_log_sink(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "human").lower(),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

_defaults: Optional[PingDefaults] = None


def get_defaults() -> PingDefaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = PingDefaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "LogSink",
    "PingDefaults",
    "get_defaults",
    "reset_defaults",
]
