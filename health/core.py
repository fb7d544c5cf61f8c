# ============================================================================
# PROBE CORE TYPES
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Base classes for probes
# PURPOSE: Probe interface, outcome values and the per-invocation context
# CREATED: 12 OCT 2026
# ============================================================================
"""
Probe Core Types

Defines the probe interface and result types.

Severity Hierarchy (worst wins):
- success: Dependency works
- disabled: Dependency not configured (never a failure)
- warning: Degraded but non-fatal, logged only
- error: Failure, flips the whole ping to HTTP 500

Probe order (priority, lower runs first):
    bootstrap(10) db(20) memcache(30) redis(40) elasticsearch(50)
    fs-scheme-create(60) fs-scheme-delete(70) fs-scheme-cleanup(80)
    custom-ping(90)
"""

import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from core.config.defaults import PingDefaults
from core.models.settings import HostSettings


class Severity(str, Enum):
    """Probe outcome severity."""
    SUCCESS = "success"
    DISABLED = "disabled"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return {
            Severity.SUCCESS: 0,
            Severity.DISABLED: 0,
            Severity.WARNING: 1,
            Severity.ERROR: 2,
        }[self]

    def __lt__(self, other: "Severity") -> bool:
        """Enable comparison for 'worst wins' aggregation."""
        return self.rank < other.rank

    @classmethod
    def worst(cls, severities: Iterable["Severity"]) -> "Severity":
        """Aggregate multiple severities (worst wins)."""
        return max(severities, key=lambda s: s.rank, default=cls.SUCCESS)


@dataclass(frozen=True)
class Outcome:
    """
    Result of one probe invocation.

    Attributes:
        severity: Exactly one severity per probe per invocation
        payload: Diagnostic fields, "message" first. Empty only for
            success/disabled.
        output: Value handed to later probes (settings, file path).
            Never rendered or logged.
    """
    severity: Severity
    payload: Dict[str, Any] = field(default_factory=dict)
    output: Any = None

    @classmethod
    def success(cls, output: Any = None, **payload) -> "Outcome":
        """Create success outcome."""
        return cls(Severity.SUCCESS, dict(payload), output)

    @classmethod
    def disabled(cls) -> "Outcome":
        """Create disabled outcome."""
        return cls(Severity.DISABLED)

    @classmethod
    def warning(cls, message: str, **payload) -> "Outcome":
        """Create warning outcome."""
        return cls(Severity.WARNING, {"message": message, **payload})

    @classmethod
    def error(cls, message: str, **payload) -> "Outcome":
        """Create error outcome."""
        return cls(Severity.ERROR, {"message": message, **payload})

    @classmethod
    def from_exception(cls, function: str, e: BaseException) -> "Outcome":
        """Create error outcome from an uncaught fault."""
        return cls.error("Internal error.", function=function, exception=str(e))

    @property
    def is_failure(self) -> bool:
        return self.severity == Severity.ERROR

    def payload_text(self) -> str:
        """Payload as compact JSON, empty string for an empty payload."""
        if not self.payload:
            return ""
        return json.dumps(self.payload, separators=(",", ":"), default=str)


@dataclass
class PingContext:
    """
    Explicit per-invocation context handed to every probe.

    Probes read their configuration from here and never from globals.
    The orchestrator stores each probe's output under the probe name
    once it completes; nothing else is shared between probes.
    """
    defaults: PingDefaults
    outputs: Dict[str, Any] = field(default_factory=dict)

    def output(self, name: str) -> Any:
        """Output of an earlier probe, None if it did not produce one."""
        return self.outputs.get(name)

    @property
    def settings(self) -> HostSettings:
        """Host settings from bootstrap, empty settings if bootstrap failed."""
        settings = self.outputs.get("bootstrap")
        if isinstance(settings, HostSettings):
            return settings
        return HostSettings()

    @property
    def files_path(self) -> str:
        """Public files directory of the host application."""
        path = self.settings.file_directory_path
        if os.path.isabs(path):
            return path
        return os.path.join(self.defaults.app_root, path)


class Probe(ABC):
    """
    Base class for probes.

    Subclass and implement run() to create a probe.
    Use the @register_probe decorator or manual registration.

    Attributes:
        name: Unique identifier, used as the Status key and in logs
        priority: Execution order (lower runs first)

    Example:
        @register_probe(priority=20)
        class DbCheck(Probe):
            name = "db"

            def run(self, context: PingContext) -> Outcome:
                ...
                return Outcome.success()
    """

    name: str = "unnamed"
    priority: int = 100

    @abstractmethod
    def run(self, context: PingContext) -> Outcome:
        """
        Execute the probe.

        Must not raise on expected failures; report them as an Outcome.
        Anything that does escape is turned into an internal error by
        safe_run().
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"


def safe_run(probe: Probe, context: PingContext) -> Outcome:
    """
    Safety wrapper around Probe.run().

    One broken probe must never prevent the rest from running, so every
    fault becomes that probe's error outcome.
    """
    try:
        outcome = probe.run(context)
    except Exception as e:
        return Outcome.from_exception(f"{type(probe).__name__}::run", e)

    if not isinstance(outcome, Outcome):
        return Outcome.error(
            "Internal error.",
            function=f"{type(probe).__name__}::run",
            exception=f"Unexpected result type: {type(outcome).__name__}",
        )
    return outcome


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "Severity",
    "Outcome",
    "PingContext",
    "Probe",
    "safe_run",
]
