# ============================================================================
# BOOTSTRAP PROBE
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Host application bootstrap
# PURPOSE: Load the host application settings for every later probe
# CREATED: 12 OCT 2026
# ============================================================================
"""
Bootstrap Probe

Runs first (priority 10). It is a check, but also the setup for the
rest: the validated HostSettings are exposed as its output and every
later probe reads its configuration from them.

If bootstrap fails the remaining probes still run, against empty
settings, so the response stays diagnosable.
"""

import logging
import os

import yaml
from pydantic import ValidationError

from core.models.settings import HostSettings
from health.core import Outcome, PingContext, Probe
from health.registry import register_probe

logger = logging.getLogger(__name__)


def load_settings(path: str) -> HostSettings:
    """
    Load and validate a settings file.

    Raises:
        FileNotFoundError: The file does not exist
        yaml.YAMLError: The file is not valid YAML
        ValidationError: The content does not match HostSettings
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings must be a mapping, got {type(data).__name__}")

    return HostSettings.model_validate(data)


@register_probe(priority=10)
class BootstrapCheck(Probe):
    """Host application bootstrap."""

    name = "bootstrap"

    def run(self, context: PingContext) -> Outcome:
        app_root = context.defaults.app_root
        if not os.path.isdir(app_root):
            return Outcome.error(
                "Application root not found.",
                app_root=app_root,
            )

        path = context.defaults.settings_path
        try:
            settings = load_settings(path)
        except FileNotFoundError:
            return Outcome.error("Settings file not found.", path=path)
        except (yaml.YAMLError, ValidationError, ValueError) as e:
            logger.warning(f"Invalid settings file {path}: {e}")
            return Outcome.error(
                "Invalid settings file.",
                path=path,
                error=str(e),
            )

        return Outcome.success(output=settings)


__all__ = [
    "BootstrapCheck",
    "load_settings",
]
