# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models describing the host application's settings.
"""

from core.models.settings import (
    DatabaseSettings,
    ElasticsearchConnection,
    HostSettings,
    RedisSettings,
)

__all__ = [
    "DatabaseSettings",
    "ElasticsearchConnection",
    "HostSettings",
    "RedisSettings",
]
