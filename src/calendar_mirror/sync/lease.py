"""
Run-level mutual exclusion.

A run holds a lease record on disk for the whole reconcile-and-apply cycle.
The record is written aside and hard-linked into place, so only one run can
take a free lease and nobody reads a partial record. A record older than its
TTL belongs to a crashed run and is taken over under a separate guard file.
"""

import json
import logging
import os
import socket
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import pytz

from ..utils.exceptions import LeaseHeldError

logger = logging.getLogger(__name__)


class RunLease:
    """Context manager holding the run lease for one sync run."""

    def __init__(self, path: Path, ttl: timedelta = timedelta(minutes=30)):
        self.path = Path(path)
        self.ttl = ttl
        self.owner = f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"
        self._held = False

    def _read(self) -> Optional[dict]:
        try:
            return json.loads(self.path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            # Unreadable or corrupt record; treat as stale
            return {}

    def _is_stale(self, record: dict, now: datetime) -> bool:
        expires_at = record.get("expires_at")
        if not expires_at:
            return True
        try:
            return datetime.fromisoformat(expires_at) <= now
        except ValueError:
            return True

    def _create(self, now: datetime) -> bool:
        record = {
            "owner": self.owner,
            "acquired_at": now.isoformat(),
            "expires_at": (now + self.ttl).isoformat(),
        }
        # Write the full record aside, then link it into place: the link fails
        # if a lease exists, and readers never see a half-written record
        tmp = self.path.with_name(f"{self.path.name}.{self.owner.replace(':', '-')}.tmp")
        tmp.write_text(json.dumps(record))
        try:
            os.link(tmp, self.path)
        except FileExistsError:
            return False
        finally:
            tmp.unlink(missing_ok=True)
        return True

    @property
    def _guard(self) -> Path:
        return self.path.with_name(self.path.name + ".takeover")

    def _clear_abandoned_guard(self, now: datetime) -> None:
        try:
            age = now.timestamp() - self._guard.stat().st_mtime
        except FileNotFoundError:
            return
        if age > self.ttl.total_seconds():
            logger.warning("Removing takeover guard left by a crashed run")
            self._guard.unlink(missing_ok=True)

    def _take_over(self, now: datetime) -> None:
        """
        Replace a stale lease record with this run's own.

        Takeovers are serialised by an exclusive guard file. The record is
        re-read under the guard, so a run that judged the lease stale but lost
        the race to another takeover sees the winner's live record and backs
        off.

        Raises:
            LeaseHeldError: If another run holds or is taking over the lease
        """
        self._clear_abandoned_guard(now)
        try:
            fd = os.open(self._guard, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise LeaseHeldError("Another run is taking over the stale lease") from None
        os.close(fd)

        try:
            record = self._read()
            if record is not None and not self._is_stale(record, now):
                raise LeaseHeldError(
                    f"Run lease was taken by {record.get('owner', 'unknown')} "
                    f"during takeover"
                )
            logger.warning(
                f"Taking over stale run lease from {(record or {}).get('owner', 'unknown')}"
            )
            self.path.unlink(missing_ok=True)
            if not self._create(now):
                raise LeaseHeldError("Run lease was taken by another run during takeover")
        finally:
            self._guard.unlink(missing_ok=True)

    def acquire(self) -> None:
        """
        Take the lease.

        Raises:
            LeaseHeldError: If another live run holds it
        """
        now = datetime.now(pytz.utc)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if self._create(now):
            self._held = True
            logger.debug(f"Run lease acquired by {self.owner}")
            return

        record = self._read()
        if record is not None and not self._is_stale(record, now):
            raise LeaseHeldError(
                f"Another run ({record.get('owner', 'unknown')}) holds the lease "
                f"until {record.get('expires_at')}"
            )

        self._take_over(now)
        self._held = True

    def release(self) -> None:
        """Release the lease if this run still owns it."""
        if not self._held:
            return
        self._held = False
        record = self._read()
        if record and record.get("owner") != self.owner:
            logger.warning("Run lease was taken over by another run; not removing it")
            return
        self.path.unlink(missing_ok=True)
        logger.debug(f"Run lease released by {self.owner}")

    def __enter__(self) -> "RunLease":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
