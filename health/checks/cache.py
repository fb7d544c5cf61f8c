# ============================================================================
# CACHE PROBES
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Memcache and Redis checks
# PURPOSE: Cache server connectivity
# CREATED: 12 OCT 2026
# ============================================================================
"""
Cache Probes

- MemcacheCheck (priority 30): every configured memcache server must
  answer a "stats" command. Some down is a warning, all down is an error.
- RedisCheck (priority 40): one connection (TCP or unix socket) must
  answer PING.

Memcache is spoken to over a plain socket: one "stats" command, one line
of response.
"""

import logging
import re
import socket
from dataclasses import dataclass
from typing import List, Optional, Tuple

import redis

from core.models.settings import HostSettings
from health.core import Outcome, PingContext, Probe
from health.registry import register_probe

logger = logging.getLogger(__name__)

MEMCACHE_DEFAULT_PORT = 11211
STATS_RESPONSE = re.compile(r"^STAT ")


@dataclass(frozen=True)
class MemcacheServer:
    """One memcache server from the settings. error is set when the address is unusable."""
    host: str
    port: Optional[int]
    bin: str = "default"
    error: Optional[str] = None


def parse_address(address: str) -> Tuple[str, int]:
    """
    Split "host", "host:port", "[v6]" or "[v6]:port".

    An unbracketed address with several colons is taken as a bare IPv6
    host on the default port.

    Raises:
        ValueError: empty host or a port that is not a number in range
    """
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep or (rest and not rest.startswith(":")):
            raise ValueError(f"Invalid address '{address}'")
        port = rest[1:] if rest else MEMCACHE_DEFAULT_PORT
    elif address.count(":") == 1:
        host, port = address.split(":")
    else:
        host, port = address, MEMCACHE_DEFAULT_PORT

    if not host:
        raise ValueError(f"Invalid address '{address}'")
    try:
        port = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in '{address}'") from None
    if not 0 < port < 65536:
        raise ValueError(f"Invalid port in '{address}'")
    return host, port


@register_probe(priority=30)
class MemcacheCheck(Probe):
    """
    Memcache connectivity.

    Statuses:
    - disabled: no servers configured
    - success: all servers answer
    - warning: some servers do not answer
    - error: no server answers
    """

    name = "memcache"

    @staticmethod
    def servers_from_settings(settings: HostSettings) -> List[MemcacheServer]:
        """Convert {"host:port": bin} settings to server descriptors."""
        servers = []
        for address, bin_name in settings.memcache_servers.items():
            try:
                host, port = parse_address(address)
            except ValueError as e:
                logger.warning(f"Memcache server {address!r} is invalid: {e}")
                servers.append(MemcacheServer(host=address, port=None, bin=bin_name, error=str(e)))
                continue
            servers.append(MemcacheServer(host=host, port=port, bin=bin_name))
        return servers

    def run(self, context: PingContext) -> Outcome:
        servers = self.servers_from_settings(context.settings)
        return self.check_servers(servers, timeout=context.defaults.memcache_timeout)

    def check_servers(
        self,
        servers: List[MemcacheServer],
        timeout: float = 1.0,
    ) -> Outcome:
        if not servers:
            return Outcome.disabled()

        good_count = 0
        failures = []

        for server in servers:
            error = server.error or self.probe_server(server, timeout)
            if error is None:
                good_count += 1
                continue
            failures.append({
                "host": server.host,
                "port": server.port,
                "error": error,
            })

        if not failures:
            return Outcome.success()

        if good_count > 0:
            return Outcome.warning("Connection warnings.", warnings=failures)

        return Outcome.error("Connection errors.", errors=failures)

    @staticmethod
    def probe_server(server: MemcacheServer, timeout: float) -> Optional[str]:
        """
        Send "stats" and check the first line of the response.

        Returns:
            None if the server is good, otherwise the reason it is not
        """
        try:
            with socket.create_connection((server.host, server.port), timeout=timeout) as sock:
                sock.sendall(b"stats\n")
                with sock.makefile("rb") as stream:
                    line = stream.readline(1024)
        except OSError as e:
            return e.strerror or str(e) or type(e).__name__

        text = line.decode("utf-8", errors="replace").rstrip("\r\n")
        if not STATS_RESPONSE.match(text):
            return f"Unexpected response: '{text}'"
        return None


@register_probe(priority=40)
class RedisCheck(Probe):
    """
    Redis connectivity.

    Handles both:
    - TCP/IP: host and port are defined
    - Unix socket: only host is defined, as the socket path
    """

    name = "redis"

    @staticmethod
    def connection_from_settings(settings: HostSettings) -> Tuple[Optional[str], Optional[int]]:
        """Return (host, port) from the settings."""
        return settings.redis.host or None, settings.redis.port or None

    def run(self, context: PingContext) -> Outcome:
        host, port = self.connection_from_settings(context.settings)
        return self.check_connection(host, port, timeout=context.defaults.redis_timeout)

    def check_connection(
        self,
        host: Optional[str],
        port: Optional[int],
        timeout: float = 2.0,
    ) -> Outcome:
        if not host and not port:
            return Outcome.disabled()

        if port is None:
            client = redis.Redis(
                unix_socket_path=host,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )
        else:
            client = redis.Redis(
                host=host or "localhost",
                port=port,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )

        try:
            client.ping()
        except redis.RedisError as e:
            return Outcome.error(
                "Unable to connect.",
                host=host,
                port=port,
                error=str(e),
            )
        finally:
            client.close()

        return Outcome.success()


__all__ = [
    "MemcacheServer",
    "parse_address",
    "MemcacheCheck",
    "RedisCheck",
]
