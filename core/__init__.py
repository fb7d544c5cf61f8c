# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Core module initialization
# PURPOSE: Export configuration, logging and settings models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.config import PingDefaults, get_defaults
from core.models import HostSettings

__all__ = [
    "PingDefaults",
    "get_defaults",
    "HostSettings",
]
