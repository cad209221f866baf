"""
Per-destination run lock.

Two runs writing the same spreadsheet would interleave their clear and
write calls, so a run holds a PID file named after its destination for its
whole duration.
"""

from __future__ import annotations

import re
from pathlib import Path
from types import TracebackType

from roster_sync.utils.pidfile import PIDFile, PIDFileError, PIDFileLockedError

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class RunLockError(Exception):
    """Raised when the run lock cannot be taken."""

    pass


def lock_path(lock_dir: Path, destination_id: str) -> Path:
    """Path of the lock file for a destination."""
    safe_name = _UNSAFE_CHARS.sub("_", destination_id) or "default"
    return Path(lock_dir) / f"{safe_name}.lock"


class RunLock:
    """
    Context manager serializing runs against one destination.

    Usage:
        with RunLock(config_dir / "locks", spreadsheet_id):
            engine.sync()
    """

    def __init__(self, lock_dir: Path, destination_id: str):
        self.destination_id = destination_id
        self._pid_file = PIDFile(lock_path(lock_dir, destination_id))

    @property
    def path(self) -> Path:
        return self._pid_file.path

    def __enter__(self) -> RunLock:
        try:
            self._pid_file.acquire()
        except PIDFileLockedError as e:
            holder = f" (PID {e.pid})" if e.pid is not None else ""
            raise RunLockError(
                f"Another sync{holder} is already running for "
                f"{self.destination_id}"
            ) from e
        except PIDFileError as e:
            raise RunLockError(str(e)) from e
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._pid_file.release()
