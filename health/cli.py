# ============================================================================
# PING CLI
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Entry point - Command line ping
# PURPOSE: Run the dependency ping locally with full debug output
# CREATED: 14 OCT 2026
# ============================================================================
"""
Ping CLI

Runs the same probes as GET /_ping. CLI output always includes the
debug code and both tables.

Usage:
    ping
    ping --app-root /var/www/site --settings conf/settings.yaml
    ping --log-level DEBUG

Exit status is 0 when the ping answers 200, 1 otherwise.
"""

import argparse
import dataclasses
import logging
import os
import sys
from typing import List, Optional

import psutil

from core.config.defaults import PingDefaults
from core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ping",
        description="Check that the application's dependencies are functional.",
    )
    parser.add_argument(
        "--app-root",
        help="Application root directory (default: $PING_APP_ROOT or .)",
    )
    parser.add_argument(
        "--settings",
        help="Settings file, relative to the application root (default: settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        help="Diagnostics log level (default: $LOG_LEVEL or INFO)",
    )
    return parser


def process_started_at() -> Optional[float]:
    """Process creation time in epoch seconds, used for preboot."""
    try:
        return psutil.Process(os.getpid()).create_time()
    except psutil.Error:
        return None


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    Run the ping once and print the result.

    Returns:
        Process exit status
    """
    started_at = process_started_at()
    args = build_parser().parse_args(argv)

    defaults = PingDefaults.from_env()
    overrides = {}
    if args.app_root:
        overrides["app_root"] = args.app_root
    if args.settings:
        overrides["settings_file"] = args.settings
    if args.log_level:
        overrides["log_level"] = args.log_level
    if overrides:
        defaults = dataclasses.replace(defaults, **overrides)

    configure_logging(
        level=defaults.log_level,
        json_output=defaults.log_format == "json",
    )

    # Registration happens on import; do it after logging is configured
    import health.checks  # noqa: F401
    from health.app import App

    result = App(defaults=defaults, cli=True, request_started_at=started_at).run()

    sys.stdout.write(result.body)
    return 0 if result.ok else 1


def main() -> None:
    """Console script entry point."""
    code = run_cli()
    sys.stdout.flush()
    sys.stderr.flush()
    # Skip interpreter shutdown: no exit handler may run after the ping
    os._exit(code)


if __name__ == "__main__":
    main()
