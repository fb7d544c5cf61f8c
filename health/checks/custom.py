# ============================================================================
# CUSTOM PING PROBE
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Extension - Site specific check
# PURPOSE: Run an optional check(settings) hook supplied by the site
# CREATED: 13 OCT 2026
# ============================================================================
"""
Custom Ping Probe

Runs last (priority 90). Sites extend the ping by dropping a
_ping_custom.py file into the application root:

    # _ping_custom.py
    from health.core import Outcome

    def check(settings):
        if not settings.model_extra.get("payment_gateway_url"):
            return Outcome.warning("Payment gateway not configured.")
        return None  # success

The hook receives the validated HostSettings. Returning None means
success; returning an Outcome reports that outcome. Anything raised is
turned into an internal error by the safety wrapper.

A hook can also be injected directly, which is how tests use it:

    CustomPingCheck(hook=lambda settings: None)
"""

import importlib.util
import logging
import os
from typing import Callable, Optional

from core.models.settings import HostSettings
from health.core import Outcome, PingContext, Probe
from health.registry import register_probe

logger = logging.getLogger(__name__)

CustomHook = Callable[[HostSettings], Optional[Outcome]]

HOOK_FUNCTION = "check"
HOOK_MODULE_NAME = "_ping_custom"


def load_custom_hook(path: str) -> Optional[CustomHook]:
    """
    Load the check() function from a hook file.

    Returns:
        The hook, or None if the file does not exist

    Raises:
        ImportError: The file cannot be loaded
        TypeError: The file does not define a callable check()
    """
    if not os.path.isfile(path):
        return None

    spec = importlib.util.spec_from_file_location(HOOK_MODULE_NAME, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load custom hook from {path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    hook = getattr(module, HOOK_FUNCTION, None)
    if not callable(hook):
        raise TypeError(f"{path} does not define a callable {HOOK_FUNCTION}()")

    logger.debug(f"Loaded custom hook from {path}")
    return hook


@register_probe(priority=90)
class CustomPingCheck(Probe):
    """Optional site specific check."""

    name = "custom-ping"

    def __init__(self, hook: Optional[CustomHook] = None):
        self.hook = hook

    def run(self, context: PingContext) -> Outcome:
        hook = self.hook
        if hook is None:
            hook = load_custom_hook(context.defaults.custom_hook_path)
        if hook is None:
            return Outcome.disabled()

        result = hook(context.settings)
        if result is None:
            return Outcome.success()
        return result


__all__ = [
    "CustomHook",
    "CustomPingCheck",
    "load_custom_hook",
]
