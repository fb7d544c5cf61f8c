# ============================================================================
# PROBE REGISTRY
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Probe registration
# PURPOSE: Register probes and hand them out in their fixed order
# CREATED: 12 OCT 2026
# ============================================================================
"""
Probe Registry

Manages registration of probes and their execution order.

Usage:
    # Decorator registration
    @register_probe(priority=30)
    class MemcacheCheck(Probe):
        ...

    # Manual registration
    registry = ProbeRegistry()
    registry.register(MemcacheCheck())

    # Get probes for execution
    probes = registry.get_probes_by_priority()
"""

import logging
from typing import Dict, List, Optional, Type

from health.core import Probe

logger = logging.getLogger(__name__)


class ProbeRegistry:
    """
    Registry for probes.

    Each probe name may be registered once: the name is the key
    of its Status entry, and no probe may overwrite another's entry.
    """

    def __init__(self):
        self._probes: Dict[str, Probe] = {}

    def register(self, probe: Probe) -> None:
        """
        Register a probe instance.

        Raises:
            ValueError: If a probe with the same name is already registered
        """
        if probe.name in self._probes:
            raise ValueError(f"Probe already registered: {probe.name}")

        self._probes[probe.name] = probe
        logger.debug(f"Registered probe: {probe.name} (priority={probe.priority})")

    def register_class(self, probe_class: Type[Probe], **kwargs) -> Probe:
        """Instantiate and register a probe class."""
        instance = probe_class(**kwargs)
        self.register(instance)
        return instance

    def unregister(self, name: str) -> bool:
        """Remove a probe by name."""
        if name in self._probes:
            del self._probes[name]
            return True
        return False

    def get(self, name: str) -> Optional[Probe]:
        """Get probe by name."""
        return self._probes.get(name)

    def get_probes_by_priority(self) -> List[Probe]:
        """All probes sorted by priority (lower first, ties by registration)."""
        return sorted(self._probes.values(), key=lambda p: p.priority)

    def __len__(self) -> int:
        return len(self._probes)

    def __contains__(self, name: str) -> bool:
        return name in self._probes


# ============================================================================
# GLOBAL REGISTRY & DECORATOR
# ============================================================================

_registry: Optional[ProbeRegistry] = None


def get_registry() -> ProbeRegistry:
    """Get the global probe registry."""
    global _registry
    if _registry is None:
        _registry = ProbeRegistry()
    return _registry


def register_probe(priority: int = None):
    """
    Decorator to register a probe class with the global registry.

    Args:
        priority: Override priority (lower runs first)

    Example:
        @register_probe(priority=40)
        class RedisCheck(Probe):
            name = "redis"
    """
    def decorator(cls: Type[Probe]) -> Type[Probe]:
        if priority is not None:
            cls.priority = priority

        get_registry().register_class(cls)
        return cls

    return decorator


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProbeRegistry",
    "get_registry",
    "register_probe",
]
