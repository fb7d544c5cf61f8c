# ============================================================================
# FILESYSTEM PROBES
# ============================================================================
# EPOCH: 1 - DEPENDENCY PING
# STATUS: Infrastructure - Public files storage checks
# PURPOSE: Create, delete and clean up marker files in the files directory
# CREATED: 13 OCT 2026
# ============================================================================
"""
Filesystem Probes

Three probes share the public files directory:

- fs-scheme-create (60): create an empty marker file
    status_check__<unix-ts>__<random>
  and hand its path to the next probe.
- fs-scheme-delete (70): delete the marker created above.
- fs-scheme-cleanup (80): remove markers left behind by earlier
  invocations that died between create and delete.

Cleanup only ever touches empty regular files matching the marker
prefix, so user content cannot be removed even if it happens to share
the prefix.
"""

import logging
import os
import re
import stat
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional

from health.core import Outcome, PingContext, Probe
from health.registry import register_probe

logger = logging.getLogger(__name__)


def marker_pattern(prefix: str) -> "re.Pattern[str]":
    """Regex extracting the creation timestamp from a marker file name."""
    return re.compile(rf"^{re.escape(prefix)}_(\d+)__")


@register_probe(priority=60)
class FsSchemeCreateCheck(Probe):
    """Create a marker file in the public files directory."""

    name = "fs-scheme-create"

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def run(self, context: PingContext) -> Outcome:
        return self.create_marker(context.files_path, context.defaults.marker_prefix)

    def create_marker(self, files_path: str, prefix: str) -> Outcome:
        try:
            fd, path = tempfile.mkstemp(
                prefix=f"{prefix}_{int(self.clock())}__",
                dir=files_path,
            )
        except OSError as e:
            return Outcome.error(
                "Could not create temporary file in the files directory.",
                path=files_path,
                error=str(e),
            )

        os.close(fd)
        return Outcome.success(output=path)


@register_probe(priority=70)
class FsSchemeDeleteCheck(Probe):
    """Delete the marker file created by fs-scheme-create."""

    name = "fs-scheme-delete"

    def run(self, context: PingContext) -> Outcome:
        return self.delete_marker(context.output(FsSchemeCreateCheck.name))

    def delete_marker(self, path: Optional[str]) -> Outcome:
        if not path:
            return Outcome.disabled()

        try:
            os.unlink(path)
        except OSError as e:
            return Outcome.error(
                "Could not delete newly created file in the files directory.",
                file=path,
                error=str(e),
            )

        return Outcome.success()


@register_probe(priority=80)
class FsSchemeCleanupCheck(Probe):
    """
    Remove orphaned marker files.

    A marker is orphaned when its embedded timestamp (or its mtime, if
    the name carries none) is older than the retention window. Markers
    dated in the future beyond the clock drift tolerance are reported
    but left alone.

    Statuses:
    - success: nothing to remove
    - warning: orphans removed or future-dated markers found
    - error: directory cannot be listed or a marker cannot be deleted
    """

    name = "fs-scheme-cleanup"

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def run(self, context: PingContext) -> Outcome:
        defaults = context.defaults
        return self.cleanup(
            context.files_path,
            prefix=defaults.marker_prefix,
            retention_seconds=defaults.marker_retention_seconds,
            drift_seconds=defaults.clock_drift_seconds,
        )

    def cleanup(
        self,
        files_path: str,
        prefix: str = "status_check_",
        retention_seconds: int = 3600,
        drift_seconds: int = 5,
    ) -> Outcome:
        directory = Path(files_path)
        pattern = str(directory / f"{prefix}*")

        # Path.glob swallows scandir errors, so list the directory directly
        try:
            with os.scandir(files_path) as entries:
                names = sorted(entry.name for entry in entries if entry.name.startswith(prefix))
        except OSError as e:
            return Outcome.error("Unable to list files.", pattern=pattern, error=str(e))

        candidates = [directory / name for name in names]

        timestamp_re = marker_pattern(prefix)
        now = self.clock()
        removed_count = 0
        future_files: List[str] = []

        for path in candidates:
            try:
                st = path.lstat()
            except FileNotFoundError:
                # Removed concurrently by another invocation
                continue

            if not stat.S_ISREG(st.st_mode) or st.st_size != 0:
                continue

            match = timestamp_re.match(path.name)
            created = int(match.group(1)) if match else int(st.st_mtime)

            if created > now + drift_seconds:
                future_files.append(path.name)
                continue

            if now - created <= retention_seconds:
                continue

            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                return Outcome.error(
                    "Could not delete file in the files directory.",
                    file=str(path),
                    error=str(e),
                )
            removed_count += 1

        if removed_count == 0 and not future_files:
            return Outcome.success()

        if removed_count:
            logger.info(f"Removed {removed_count} orphaned marker file(s) from {files_path}")
            message = "Orphaned fs check files deleted."
        else:
            message = "Marker files dated in the future."

        payload = {"removed_count": removed_count}
        if future_files:
            payload["future_count"] = len(future_files)
            payload["future_files"] = future_files
        return Outcome.warning(message, **payload)


__all__ = [
    "FsSchemeCreateCheck",
    "FsSchemeDeleteCheck",
    "FsSchemeCleanupCheck",
    "marker_pattern",
]
