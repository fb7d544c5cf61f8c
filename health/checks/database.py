# ============================================================================
# DATABASE PROBE
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Main database check
# PURPOSE: Run the sentinel query and verify the row count
# CREATED: 12 OCT 2026
# ============================================================================
"""
Database Probe

Runs a trivial read query (priority 20) that is expected to return
exactly one known row. Any other row count means the database we are
talking to is not the one we expect.
"""

import logging

import psycopg

from core.models.settings import DatabaseSettings
from health.core import Outcome, PingContext, Probe
from health.registry import register_probe

logger = logging.getLogger(__name__)


@register_probe(priority=20)
class DbCheck(Probe):
    """Main database connectivity."""

    name = "db"

    def run(self, context: PingContext) -> Outcome:
        return self.check_database(
            context.settings.database,
            connect_timeout=context.defaults.db_connect_timeout,
        )

    def check_database(
        self,
        database: DatabaseSettings,
        connect_timeout: int = 2,
    ) -> Outcome:
        conninfo = database.conninfo()
        if conninfo is None:
            return Outcome.error("Database not configured.")

        try:
            with psycopg.connect(conninfo, connect_timeout=connect_timeout) as conn:
                rows = conn.execute(database.sentinel_query).fetchall()
        except psycopg.Error as e:
            return Outcome.error(
                "Unable to query the master database.",
                host=database.host,
                error=str(e).strip(),
            )

        count = len(rows)
        expected = database.expected_count
        if count != expected:
            return Outcome.error(
                "Master database returned invalid results.",
                actual_count=count,
                expected_count=expected,
            )

        return Outcome.success()


__all__ = [
    "DbCheck",
]
