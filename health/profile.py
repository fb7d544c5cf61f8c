# ============================================================================
# PROFILE (TIMER)
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Probe timing
# PURPOSE: Measure every probe, report slow ones and a timing table
# CREATED: 12 OCT 2026
# ============================================================================
"""
Profile

Keeps track of timing for one invocation. Create it as early as
possible: everything between the request arriving and the Profile
being created is reported as "preboot".

Durations are kept in nanoseconds and reported in milliseconds.
"""

import time
from typing import Dict, Optional

from health.core import Outcome, PingContext, Probe, safe_run

NS_PER_MS = 1_000_000
NS_PER_S = 1_000_000_000


class Profile:
    """Time profiling for the probes of one invocation."""

    def __init__(self, request_started_at: Optional[float] = None):
        """
        Start global execution measurement.

        Args:
            request_started_at: Wall-clock time (epoch seconds) at which the
                request or process started, if known.
        """
        self._start = time.perf_counter_ns()
        self._stop: Optional[int] = None
        self._request_started_at = request_started_at
        self._items: Dict[str, int] = {}

        self.preboot = self._spent()
        self.duration = 0

    def _spent(self) -> int:
        """Nanoseconds since the request started, 0 if unknown."""
        if not self._request_started_at:
            return 0
        return max(0, int((time.time() - self._request_started_at) * NS_PER_S))

    def measure(self, probe: Probe, context: PingContext) -> Outcome:
        """
        Run a probe through its safety wrapper and record how long it took.

        The outcome is returned unchanged.
        """
        start = time.perf_counter_ns()
        outcome = safe_run(probe, context)
        self._items[probe.name] = time.perf_counter_ns() - start
        return outcome

    def stop(self) -> None:
        """Stop global execution measurement."""
        self._stop = time.perf_counter_ns()
        measured = self._stop - self._start
        # Wall clock covers preboot too; never report less than was measured.
        self.duration = max(self._spent(), measured)

    def elapsed_seconds(self) -> float:
        """Seconds since the profile was started."""
        return (time.perf_counter_ns() - self._start) / NS_PER_S

    def get(self) -> Dict[str, int]:
        """Raw durations in nanoseconds."""
        return dict(self._items)

    def get_by_duration(
        self,
        min_ms: Optional[float] = None,
        max_ms: Optional[float] = None,
    ) -> Dict[str, float]:
        """
        Filter probes that took between min_ms and max_ms (inclusive).

        Returns:
            {name: duration_ms}
        """
        filtered = {}
        for name, duration in self._items.items():
            duration_ms = duration / NS_PER_MS
            if min_ms is not None and duration_ms < min_ms:
                continue
            if max_ms is not None and duration_ms > max_ms:
                continue
            filtered[name] = duration_ms
        return filtered

    def get_text_table(self, separator: str) -> str:
        """
        Format a 2-column text table: durations (sorted) and probe names,
        followed by preboot and total.
        """
        def line(duration: int, name: str) -> str:
            return f"{duration / NS_PER_MS:10.3f} ms - {name}"

        items = sorted(self._items.items(), key=lambda item: item[1], reverse=True)
        lines = [line(duration, name) for name, duration in items]

        lines.append("")
        lines.append(line(self.preboot, "preboot"))
        lines.append(line(self.duration, "total"))

        return separator.join(lines)


__all__ = [
    "Profile",
]
