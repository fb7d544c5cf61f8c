# ============================================================================
# PROBES
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Probe implementations
# PURPOSE: Concrete dependency probes, registered in their fixed order
# CREATED: 12 OCT 2026
# ============================================================================
"""
Probes

Concrete probes of the ping endpoint, in execution order:

Bootstrap (priority 10):
- bootstrap: Load the host application settings

Storage (priority 20-50):
- db: Main database sentinel query
- memcache: Every memcache server answers "stats"
- redis: Redis answers PING
- elasticsearch: Every cluster reports green

Public files (priority 60-80):
- fs-scheme-create: Create a marker file
- fs-scheme-delete: Delete it again
- fs-scheme-cleanup: Remove orphaned markers

Extension (priority 90):
- custom-ping: Site specific hook

Import this module to register all probes:
    import health.checks
"""

# Import all probe modules to trigger registration
from health.checks.bootstrap import BootstrapCheck
from health.checks.database import DbCheck
from health.checks.cache import MemcacheCheck, RedisCheck
from health.checks.search import ElasticsearchCheck
from health.checks.filesystem import (
    FsSchemeCreateCheck,
    FsSchemeDeleteCheck,
    FsSchemeCleanupCheck,
)
from health.checks.custom import CustomPingCheck

__all__ = [
    # Bootstrap
    "BootstrapCheck",
    # Storage
    "DbCheck",
    "MemcacheCheck",
    "RedisCheck",
    "ElasticsearchCheck",
    # Public files
    "FsSchemeCreateCheck",
    "FsSchemeDeleteCheck",
    "FsSchemeCleanupCheck",
    # Extension
    "CustomPingCheck",
]
