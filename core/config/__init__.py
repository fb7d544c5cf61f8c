# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the ping endpoint.
"""

from core.config.defaults import (
    LogSink,
    PingDefaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "LogSink",
    "PingDefaults",
    "get_defaults",
    "reset_defaults",
]
