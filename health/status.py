# ============================================================================
# STATUS (RESULT SET)
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Probe outcome collection
# PURPOSE: Keep track of the outcome of every probe in one invocation
# CREATED: 12 OCT 2026
# ============================================================================
"""
Status

Insertion-ordered mapping of probe name to Outcome, owned by the
orchestrator for the lifetime of one invocation.
"""

from typing import Any, Dict

from health.core import Outcome, Severity


class Status:
    """The outcomes of one ping invocation."""

    def __init__(self):
        self._items: Dict[str, Outcome] = {}

    def set(self, name: str, outcome: Outcome) -> None:
        """Record the outcome for name."""
        self._items[name] = outcome

    def get(self) -> Dict[str, Outcome]:
        """All outcomes, in the order they were recorded."""
        return dict(self._items)

    def get_by_severity(self, severity: Severity) -> Dict[str, Dict[str, Any]]:
        """
        Filter outcomes by severity.

        Returns:
            {name: payload} for every outcome with the given severity
        """
        severity = Severity(severity)
        return {
            name: outcome.payload
            for name, outcome in self._items.items()
            if outcome.severity == severity
        }

    def get_text_table(self, separator: str) -> str:
        """
        Format outcomes as a text table.

        One line per probe: name, severity and the payload as JSON.
        """
        lines = [
            f"{name:<20} {outcome.severity.value:<10} {outcome.payload_text()}"
            for name, outcome in self._items.items()
        ]
        return separator.join(lines)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: str) -> bool:
        return name in self._items


__all__ = [
    "Status",
]
