# ============================================================================
# HOST SETTINGS MODEL
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Core model - Host application settings
# PURPOSE: Typed view of the settings file loaded by the bootstrap probe
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: HostSettings, DatabaseSettings, RedisSettings, ElasticsearchConnection
# DEPENDENCIES: pydantic
# ============================================================================
"""
Host Settings Model

The host application's settings, as far as the ping endpoint cares.
Loaded from YAML by the bootstrap probe; every other probe extracts
its own configuration from this object.

Example settings.yaml:

    database:
      dsn: "host=db port=5432 dbname=app user=app password=secret"
    memcache_servers:
      "memcached:11211": default
    redis:
      host: redis
      port: 6379
    ping_elasticsearch_connections:
      - {proto: http, host: elasticsearch, port: 9200, severity: warning}
    file_directory_path: web/files
    hash_salt: "..."

Unknown keys are kept, so the same file can carry application settings
the ping endpoint does not read.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class DatabaseSettings(BaseModel):
    """Main database connection and the sentinel query to run against it."""

    dsn: Optional[str] = Field(
        default=None,
        description="libpq connection string or URL; overrides the discrete fields",
    )
    host: Optional[str] = None
    port: Optional[int] = None
    name: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None

    sentinel_query: str = Field(
        default="SELECT 1",
        description="Trivial read query expected to return exactly expected_count rows",
    )
    expected_count: int = Field(default=1, ge=0)

    def conninfo(self) -> Optional[str]:
        """Build the connection string, or None if the database is not configured."""
        if self.dsn:
            return self.dsn
        if not self.host or not self.name:
            return None

        parts = [f"host={self.host}", f"dbname={self.name}"]
        if self.port:
            parts.append(f"port={self.port}")
        if self.user:
            parts.append(f"user={self.user}")
        if self.password:
            parts.append(f"password={self.password}")
        return " ".join(parts)


class RedisSettings(BaseModel):
    """Redis address. A host without a port is a unix socket path."""

    host: Optional[str] = None
    port: Optional[int] = None


class ElasticsearchConnection(BaseModel):
    """One Elasticsearch endpoint and the severity to report if it fails."""

    proto: Literal["http", "https"] = "http"
    host: str
    port: int = 9200
    severity: Literal["warning", "error"] = "warning"

    @property
    def health_url(self) -> str:
        return f"{self.proto}://{self.host}:{self.port}/_cluster/health"


class HostSettings(BaseModel):
    """Settings of the host application."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # "host:port" -> bin
    memcache_servers: Dict[str, str] = Field(default_factory=dict)

    redis: RedisSettings = Field(default_factory=RedisSettings)

    ping_elasticsearch_connections: List[ElasticsearchConnection] = Field(
        default_factory=list,
    )

    # Public files directory, relative to the application root
    file_directory_path: str = "files"

    # Debug code sources
    ping_debug: Optional[str] = None
    hash_salt: Optional[str] = None

    model_config = {"extra": "allow"}


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "DatabaseSettings",
    "RedisSettings",
    "ElasticsearchConnection",
    "HostSettings",
]
