"""Filesystem spool for events the tracking service did not accept.

Each pending event is one immutable JSON file named
``<epoch-millis>-<random>.json``, so a sorted directory listing is delivery
order. Files are written to a temp name and renamed into place; they are
deleted only after a confirmed delivery. No locking: a file that vanishes
between listing and reading was delivered by a concurrent invocation.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .errors import SpoolError
from .events import CanonicalEvent

logger = logging.getLogger(__name__)

SPOOL_SUFFIX = ".json"
CORRUPT_SUFFIX = ".corrupt"
TEMP_SUFFIX = ".tmp"

# Temp files older than this were left by a killed writer.
STALE_TEMP_SECONDS = 60 * 60


class EventPoster(Protocol):
    def post_event(self, event: CanonicalEvent) -> bool: ...


@dataclass(frozen=True)
class SpoolEntry:
    path: Path
    event: CanonicalEvent

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class DrainReport:
    """What one drain pass did."""

    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    quarantined: list[str] = field(default_factory=list)
    vanished: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)


def spool_filename(now_ms: int | None = None) -> str:
    millis = int(time.time() * 1000) if now_ms is None else now_ms
    return f"{millis:013d}-{uuid.uuid4().hex[:9]}{SPOOL_SUFFIX}"


class SpoolStore:
    """Durable queue of undelivered events in a single directory."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def enqueue(self, event: CanonicalEvent) -> Path:
        """Persist ``event`` as a new spool file and return its path.

        Raises:
            SpoolError: if the directory or file cannot be written
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            target = self.directory / spool_filename()
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=".", suffix=TEMP_SUFFIX)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(event.to_dict(), f, indent=2, default=str)
                os.replace(tmp_path, target)
            except Exception:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise SpoolError(f"could not spool {event.event_type} event: {e}") from e
        logger.info("event spooled to %s", target)
        return target

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def pending_files(self) -> list[Path]:
        """Spool files in creation order. Missing directory means empty."""
        try:
            names = sorted(
                name
                for name in os.listdir(self.directory)
                if name.endswith(SPOOL_SUFFIX) and not name.startswith(".")
            )
        except FileNotFoundError:
            return []
        return [self.directory / name for name in names]

    def load(self, path: Path) -> SpoolEntry:
        """Read one spool file.

        Raises:
            FileNotFoundError: if the file was removed concurrently
            ValueError: if the file is not a valid spooled event
        """
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return SpoolEntry(path=path, event=CanonicalEvent.from_dict(data))

    def entries(self) -> list[SpoolEntry]:
        """Readable entries in creation order; unreadable ones are skipped."""
        result = []
        for path in self.pending_files():
            try:
                result.append(self.load(path))
            except FileNotFoundError:
                continue
            except (OSError, ValueError) as e:
                logger.warning("skipping unreadable spool file %s: %s", path.name, e)
        return result

    def __len__(self) -> int:
        return len(self.pending_files())

    # -------------------------------------------------------------------------
    # Removal
    # -------------------------------------------------------------------------

    def remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def quarantine(self, path: Path) -> Path | None:
        """Rename a malformed file out of the drain set."""
        target = path.with_name(path.name + CORRUPT_SUFFIX)
        try:
            os.replace(path, target)
        except FileNotFoundError:
            return None
        return target

    def purge(self) -> int:
        """Delete every pending file and stale temp file.

        Returns how many pending files were removed.
        """
        removed = 0
        for path in self.pending_files():
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
        self.sweep_temp_files()
        return removed

    def sweep_temp_files(self, max_age: float = STALE_TEMP_SECONDS, now: float | None = None) -> int:
        """Remove ``.*.tmp`` files older than ``max_age`` seconds.

        Younger ones may belong to a concurrent ``enqueue`` and are left alone.
        """
        now = time.time() if now is None else now
        try:
            names = [n for n in os.listdir(self.directory) if n.startswith(".") and n.endswith(TEMP_SUFFIX)]
        except FileNotFoundError:
            return 0
        removed = 0
        for name in names:
            path = self.directory / name
            try:
                if now - path.stat().st_mtime < max_age:
                    continue
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("could not remove stale temp file %s: %s", name, e)
        if removed:
            logger.info("removed %d stale spool temp file(s)", removed)
        return removed

    # -------------------------------------------------------------------------
    # Draining
    # -------------------------------------------------------------------------

    def drain(self, poster: EventPoster) -> DrainReport:
        """Try to deliver every pending entry, oldest first.

        Delivered entries are deleted; failed ones stay for the next
        invocation. Per-entry errors are logged and never raised.
        """
        report = DrainReport()
        try:
            self.sweep_temp_files()
        except OSError as e:
            logger.warning("could not sweep spool temp files: %s", e)
        for path in self.pending_files():
            try:
                entry = self.load(path)
            except FileNotFoundError:
                report.vanished.append(path.name)
                continue
            except ValueError as e:
                logger.warning("quarantining malformed spool file %s: %s", path.name, e)
                self._quarantine_quietly(path)
                report.quarantined.append(path.name)
                continue
            except OSError as e:
                logger.warning("could not read spool file %s: %s", path.name, e)
                report.failed.append(path.name)
                continue

            try:
                delivered = poster.post_event(entry.event)
            except Exception as e:
                logger.warning("delivery of spooled %s raised: %s", path.name, e)
                delivered = False

            if not delivered:
                report.failed.append(path.name)
                continue

            try:
                self.remove(path)
            except OSError as e:
                # Left behind: it will be re-sent once more on a later drain.
                logger.warning("delivered %s but could not delete it: %s", path.name, e)
            report.delivered.append(path.name)

        if report.delivered or report.failed or report.quarantined:
            logger.info(
                "spool drain: %d delivered, %d pending, %d quarantined",
                len(report.delivered),
                len(report.failed),
                len(report.quarantined),
            )
        return report

    def _quarantine_quietly(self, path: Path) -> None:
        try:
            self.quarantine(path)
        except OSError as e:
            logger.warning("could not quarantine %s: %s", path.name, e)
