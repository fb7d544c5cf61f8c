# ============================================================================
# PING ORCHESTRATOR
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Probe orchestration
# PURPOSE: Run all probes, decide the response, gate debug output
# CREATED: 13 OCT 2026
# ============================================================================
"""
Ping Orchestrator

One App instance serves one invocation (HTTP request or CLI run):

1. Setup: start the Profile, preset the response to 503 so that a
   crash anywhere below never reports success, and keep the ping out
   of New Relic statistics.
2. Run every registered probe in priority order. Each outcome goes
   into Status, each output into the shared PingContext.
3. Finish: log slow probes, warnings and errors; any error means 500,
   otherwise 200.
4. Debug gating: the Status and Profile tables are appended only for
   the CLI or when the "debug" parameter matches the debug code.

Usage:
    import health.checks  # register probes
    from health.app import App

    response = App().run(debug=request.query_params.get("debug"))
"""

import hashlib
import hmac
import json
import logging
import os
import socket
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from core.config.defaults import PingDefaults, get_defaults
from core.logging import PingLogger, get_ping_logger, log_context
from core.models.settings import HostSettings
from health.core import Outcome, PingContext, Severity
from health.profile import Profile
from health.registry import ProbeRegistry, get_registry
from health.status import Status

logger = logging.getLogger(__name__)

REASONS = {
    200: "OK",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

# Lines are newline separated in both HTTP and CLI output
SEPARATOR = "\n"


@dataclass(frozen=True)
class PingResponse:
    """Transport independent result of one invocation."""
    status_code: int
    reason: str
    body: str

    @classmethod
    def for_code(cls, status_code: int, body: str = "") -> "PingResponse":
        return cls(status_code, REASONS[status_code], body)

    @property
    def ok(self) -> bool:
        return self.status_code == 200


# ============================================================================
# DEBUG CODE
# ============================================================================

def _md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def get_debug_code(
    settings: HostSettings,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Compute the debug code.

    Sources are tried in order, the first one available wins:
    1. settings.ping_debug
    2. SILTA_CLUSTER set: md5("$PROJECT_NAME-$ENVIRONMENT_NAME")
    3. DB_NAME set: md5("$DB_HOST-$DB_NAME-$DB_PASS-$DB_PORT-$DB_USER")
    4. md5(settings.hash_salt)
    5. md5(hostname)
    """
    env = os.environ if environ is None else environ

    if settings.ping_debug:
        return settings.ping_debug

    if env.get("SILTA_CLUSTER"):
        project = env.get("PROJECT_NAME", "")
        environment = env.get("ENVIRONMENT_NAME", "")
        return _md5(f"{project}-{environment}")

    if env.get("DB_NAME"):
        parts = [env.get(key, "") for key in ("DB_HOST", "DB_NAME", "DB_PASS", "DB_PORT", "DB_USER")]
        return _md5("-".join(parts))

    if settings.hash_salt:
        return _md5(settings.hash_salt)

    return _md5(socket.gethostname())


def is_debug(param: Optional[str], code: str) -> bool:
    """Whether the request supplied the debug code. Empty never matches."""
    if not param or not code:
        return False
    return hmac.compare_digest(param.encode("utf-8"), code.encode("utf-8"))


def disable_newrelic() -> None:
    """Keep the ping out of New Relic statistics when the agent is installed."""
    try:
        import newrelic.agent
    except ImportError:
        return
    newrelic.agent.ignore_transaction()


# ============================================================================
# APP
# ============================================================================

class App:
    """Runs one ping invocation."""

    def __init__(
        self,
        defaults: Optional[PingDefaults] = None,
        registry: Optional[ProbeRegistry] = None,
        ping_logger: Optional[PingLogger] = None,
        environ: Optional[Mapping[str, str]] = None,
        cli: bool = False,
        request_started_at: Optional[float] = None,
    ):
        """
        Args:
            defaults: Ping configuration (uses global if None)
            registry: Probes to run (uses global if None)
            ping_logger: Log channel (built from defaults.log_sink if None)
            environ: Environment for the debug code (os.environ if None)
            cli: Invoked from the command line
            request_started_at: Epoch seconds the request or process started
        """
        self.defaults = defaults or get_defaults()
        self.registry = registry if registry is not None else get_registry()
        self.ping_logger = ping_logger or get_ping_logger(self.defaults.log_sink)
        self.environ = os.environ if environ is None else environ
        self.cli = cli
        self.request_started_at = request_started_at

        self.profile: Optional[Profile] = None
        self.status = Status()
        self.context = PingContext(defaults=self.defaults)
        self.debug_code: Optional[str] = None
        self.response = PingResponse.for_code(503)

    def run(self, debug: Optional[str] = None) -> PingResponse:
        """
        Run all probes and build the response.

        Args:
            debug: Value of the "debug" request parameter, if any
        """
        # Start profiling as early as possible
        self.profile = Profile(request_started_at=self.request_started_at)
        self.status = Status()
        self.context = PingContext(defaults=self.defaults)

        # Corrected in finish() once every probe has run
        self.response = PingResponse.for_code(503)
        disable_newrelic()

        mode = "cli" if self.cli else "http"
        with log_context(mode=mode):
            self.run_probes()
            self.response = self.finish(debug)
        return self.response

    def run_probes(self) -> None:
        """Run every registered probe in priority order."""
        deadline = self.defaults.deadline_seconds

        for probe in self.registry.get_probes_by_priority():
            if deadline is not None and self.profile.elapsed_seconds() >= deadline:
                logger.warning(f"Overall deadline ({deadline}s) exceeded, skipping {probe.name}")
                outcome = Outcome.error(
                    "Skipped: overall deadline exceeded.",
                    deadline_seconds=deadline,
                )
            else:
                with log_context(probe=probe.name):
                    outcome = self.profile.measure(probe, self.context)
                logger.debug(f"{probe.name}: {outcome.severity.value}")

            self.status.set(probe.name, outcome)
            self.context.outputs[probe.name] = outcome.output

    def get_slow(self) -> Dict[str, str]:
        """Probes at or over the slow threshold, as log messages."""
        slow = self.profile.get_by_duration(min_ms=self.defaults.slow_threshold_ms)
        return {name: f"duration={duration:.3f} ms" for name, duration in slow.items()}

    def get_by_severity(self, severity: Severity) -> Dict[str, str]:
        """Outcomes of the given severity, payloads rendered as JSON."""
        return {
            name: json.dumps(payload, separators=(",", ":"), default=str)
            for name, payload in self.status.get_by_severity(severity).items()
        }

    def log_items(self, items: Dict[str, str], category: str) -> None:
        for name, message in items.items():
            self.ping_logger.log(category, name, message)

    def finish(self, debug: Optional[str] = None) -> PingResponse:
        self.profile.stop()

        self.log_items(self.get_slow(), "slow")
        self.log_items(self.get_by_severity(Severity.WARNING), "warning")

        errors = self.get_by_severity(Severity.ERROR)
        if errors:
            self.log_items(errors, "error")
            code, message = 500, "INTERNAL ERROR"
        else:
            code, message = 200, "CONGRATULATIONS"

        # Never spell the success line literally in source
        body = f"{message} {code}" + SEPARATOR

        self.debug_code = get_debug_code(self.context.settings, self.environ)
        if self.cli or is_debug(debug, self.debug_code):
            body += self.debug_text()

        logger.info(f"Ping finished: {code} ({len(errors)} error(s), {len(self.status)} probe(s))")
        return PingResponse.for_code(code, body)

    def debug_text(self) -> str:
        """Status and Profile tables, preceded by the debug code in CLI mode."""
        text = ""
        if self.cli:
            text += SEPARATOR + f"Debug code: {self.debug_code}" + SEPARATOR

        text += SEPARATOR + self.status.get_text_table(SEPARATOR) + SEPARATOR
        text += SEPARATOR + self.profile.get_text_table(SEPARATOR) + SEPARATOR
        return text


__all__ = [
    "App",
    "PingResponse",
    "get_debug_code",
    "is_debug",
    "disable_newrelic",
]
