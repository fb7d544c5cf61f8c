# ============================================================================
# PING MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Dependency ping system
# PURPOSE: Probe engine, orchestrator and entry points of the /_ping endpoint
# CREATED: 12 OCT 2026
# ============================================================================
"""
Ping Module

Probe-based dependency check for a web application:
- GET /_ping: status line, 200 if every dependency works, 500 if not
- GET /_ping?debug=<code>: plus a Status table and a Profile table
- ping (CLI): same check with full debug output

Architecture:
- Probe: Base class for dependency checks
- ProbeRegistry: Probe registration, fixed order by priority
- Profile / Status: Timing and outcomes of one invocation
- App: Runs the probes, decides the response, logs problems

Usage:
    from health import ping_router, register_probe

    # Register a custom probe
    @register_probe(priority=95)
    class MyCheck(Probe):
        name = "my-check"

        def run(self, context: PingContext) -> Outcome:
            return Outcome.success()

    # Mount router
    app.include_router(ping_router)
"""

from health.core import (
    Severity,
    Outcome,
    PingContext,
    Probe,
    safe_run,
)
from health.registry import (
    ProbeRegistry,
    register_probe,
    get_registry,
)
from health.profile import Profile
from health.status import Status
from health.app import App, PingResponse
from health.router import ping_router

__all__ = [
    # Core types
    "Severity",
    "Outcome",
    "PingContext",
    "Probe",
    "safe_run",
    # Registry
    "ProbeRegistry",
    "register_probe",
    "get_registry",
    # Invocation
    "Profile",
    "Status",
    "App",
    "PingResponse",
    # Router
    "ping_router",
]
