# ============================================================================
# ELASTICSEARCH PROBE
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Search cluster check
# PURPOSE: Verify every configured cluster reports green health
# CREATED: 12 OCT 2026
# ============================================================================
"""
Elasticsearch Probe

Uses ping-specific configuration (ping_elasticsearch_connections) rather
than the application's own search settings, since there are too many
ways a site can configure its search backend.

Each connection carries a severity. A cluster that is not green is
reported under the worst severity of the failing connections, so an
optional cluster can be tagged "warning" and never fail the ping.
"""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Dict, List, Optional, Tuple

import httpx

from core.models.settings import ElasticsearchConnection, HostSettings
from health.core import Outcome, PingContext, Probe, Severity
from health.registry import register_probe

logger = logging.getLogger(__name__)

USER_AGENT = "ping"
TOTAL_TIMEOUT_ERROR = "Timeout: total time exceeded"


class TotalTimeExceeded(Exception):
    """The response body was still arriving when the time limit ran out."""


def fetch(client: httpx.Client, url: str, deadline: Optional[float] = None) -> Tuple[int, bytes]:
    """
    GET url and read the whole body.

    Raises TotalTimeExceeded once a chunk arrives after the monotonic
    deadline, so a server trickling bytes cannot keep the read going.
    """
    chunks = []
    with client.stream("GET", url) as response:
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            if deadline is not None and time.monotonic() > deadline:
                raise TotalTimeExceeded(url)
        return response.status_code, b"".join(chunks)


@register_probe(priority=50)
class ElasticsearchCheck(Probe):
    """
    Elasticsearch cluster health.

    Statuses:
    - disabled: no connections configured
    - success: every cluster is green
    - warning/error: worst severity among the failing connections
    """

    name = "elasticsearch"

    @staticmethod
    def connections_from_settings(settings: HostSettings) -> List[ElasticsearchConnection]:
        return list(settings.ping_elasticsearch_connections)

    def run(self, context: PingContext) -> Outcome:
        connections = self.connections_from_settings(context.settings)
        return self.check_connections(
            connections,
            timeout=context.defaults.elasticsearch_timeout,
        )

    def check_connections(
        self,
        connections: List[ElasticsearchConnection],
        timeout: float = 2.0,
    ) -> Outcome:
        if not connections:
            return Outcome.disabled()

        failures: List[Dict[str, Any]] = []

        with httpx.Client(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
        ) as client:
            for connection in connections:
                failure = self.check_cluster(client, connection, timeout=timeout)
                if failure is not None:
                    failures.append(failure)

        if not failures:
            return Outcome.success()

        severity = Severity.worst(Severity(f["severity"]) for f in failures)
        if severity == Severity.ERROR:
            return Outcome.error("Connection errors.", errors=failures)
        return Outcome.warning("Connection warnings.", warnings=failures)

    @staticmethod
    def check_cluster(
        client: httpx.Client,
        connection: ElasticsearchConnection,
        timeout: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Request /_cluster/health and require status "green".

        Args:
            client: HTTP client
            connection: Cluster to check
            timeout: Limit on the whole request, body included (None for none)

        Returns:
            None if the cluster is healthy, otherwise a failure record
        """
        url = connection.health_url

        def failure(error: str, **extra) -> Dict[str, Any]:
            return {"url": url, "severity": connection.severity, "error": error, **extra}

        try:
            if timeout is None:
                status_code, content = fetch(client, url)
            else:
                status_code, content = _fetch_within(client, url, timeout)
        except (FutureTimeout, TotalTimeExceeded):
            logger.warning(f"Elasticsearch {url} exceeded {timeout}s")
            return failure(TOTAL_TIMEOUT_ERROR)
        except httpx.HTTPError as e:
            return failure(f"{type(e).__name__}: {e}")

        if not content:
            return failure(f"Empty response (HTTP {status_code})")

        try:
            data = json.loads(content)
        except ValueError:
            return failure("Unable to decode JSON response")

        if not isinstance(data, dict) or not data.get("status"):
            return failure("Response does not contain status")

        if data["status"] != "green":
            return failure("Not green", status=data["status"])

        return None


def _fetch_within(client: httpx.Client, url: str, timeout: float) -> Tuple[int, bytes]:
    """
    fetch() with a hard limit on the caller's wait.

    The request runs on a worker thread. If it is still blocked in a
    socket read when the limit passes, the caller moves on and the
    worker ends at its next chunk or read timeout.
    """
    deadline = time.monotonic() + timeout
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ping-es")
    try:
        future = executor.submit(fetch, client, url, deadline)
        return future.result(timeout=timeout)
    finally:
        executor.shutdown(wait=False)


__all__ = [
    "ElasticsearchCheck",
    "TotalTimeExceeded",
    "fetch",
]
