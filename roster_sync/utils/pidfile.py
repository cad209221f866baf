"""
PID file handling shared by the daemon and the per-destination run lock.

Ownership is an exclusive flock held on the open file for as long as the
owner runs. The PID written into the file is informational: the kernel drops
the lock when the owner exits, so a file left behind by a crashed process
never blocks the next one.
"""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)

# Retries when the file is unlinked between our open() and flock()
ACQUIRE_ATTEMPTS = 3


class PIDFileError(Exception):
    """Raised when a PID file cannot be read, written or removed."""

    pass


class PIDFileLockedError(PIDFileError):
    """Raised when another process holds the PID file."""

    def __init__(self, pid_file: Path, pid: int | None):
        holder = f"running process {pid}" if pid is not None else "another process"
        super().__init__(f"{pid_file} is held by {holder}")
        self.pid_file = pid_file
        self.pid = pid


class PIDFile:
    """
    A locked file holding the PID of the process that owns it.

    Usage:
        with PIDFile(path):
            ...  # only one process gets here at a time
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._fd: int | None = None

    def read(self) -> int | None:
        """
        Read the stored PID.

        Returns:
            The PID, or None if the file doesn't exist

        Raises:
            PIDFileError: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            return None

        try:
            content = self.path.read_text().strip()
        except OSError as e:
            raise PIDFileError(f"Failed to read PID file {self.path}: {e}") from e

        try:
            return int(content)
        except ValueError as e:
            raise PIDFileError(f"Invalid PID in file {self.path}: {content}") from e

    def is_locked(self) -> bool:
        """Check whether some open file description holds the lock."""
        try:
            fd = os.open(self.path, os.O_RDONLY)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PIDFileError(f"Failed to open PID file {self.path}: {e}") from e

        try:
            fcntl.flock(fd, fcntl.LOCK_SH | fcntl.LOCK_NB)
        except BlockingIOError:
            return True
        finally:
            os.close(fd)
        return False

    def running_pid(self) -> int | None:
        """Return the stored PID if its owner still holds the lock."""
        if not self.is_locked():
            return None
        try:
            return self.read()
        except PIDFileError:
            # Owner has locked the file but not written its PID yet
            return None

    def _holder_pid(self) -> int | None:
        try:
            return self.read()
        except PIDFileError:
            return None

    def _is_current_file(self, fd: int) -> bool:
        """Check that the locked descriptor still refers to the file at path."""
        try:
            path_stat = os.stat(self.path)
        except FileNotFoundError:
            return False
        fd_stat = os.fstat(fd)
        return (fd_stat.st_dev, fd_stat.st_ino) == (path_stat.st_dev, path_stat.st_ino)

    def acquire(self) -> None:
        """
        Lock the file and write the current PID into it.

        Raises:
            PIDFileLockedError: If another process holds the lock
            PIDFileError: If the file cannot be created or written
        """
        if self._fd is not None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PIDFileError(f"Failed to create PID file {self.path}: {e}") from e

        for _ in range(ACQUIRE_ATTEMPTS):
            try:
                fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
            except OSError as e:
                raise PIDFileError(
                    f"Failed to create PID file {self.path}: {e}"
                ) from e

            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                os.close(fd)
                raise PIDFileLockedError(self.path, self._holder_pid()) from None

            if not self._is_current_file(fd):
                # Previous owner removed the file while we were opening it
                os.close(fd)
                continue

            try:
                previous = os.read(fd, 32).decode(errors="replace").strip()
                if previous and previous != str(os.getpid()):
                    logger.warning(
                        f"Replacing stale PID file {self.path} "
                        f"(process {previous} not running)"
                    )
                os.ftruncate(fd, 0)
                os.lseek(fd, 0, os.SEEK_SET)
                os.write(fd, str(os.getpid()).encode())
            except OSError as e:
                os.close(fd)
                raise PIDFileError(
                    f"Failed to write PID file {self.path}: {e}"
                ) from e

            self._fd = fd
            logger.debug(f"Acquired PID file {self.path}")
            return

        raise PIDFileError(f"Could not lock PID file {self.path}")

    def release(self) -> None:
        """
        Remove the file and drop the lock.

        The file is unlinked while still locked; a process that opened it
        earlier finds the inode gone from the path and retries.

        Raises:
            PIDFileError: If the file cannot be removed
        """
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PIDFileError(f"Failed to remove PID file {self.path}: {e}") from e
        finally:
            os.close(fd)
        logger.debug(f"Released PID file {self.path}")

    def __enter__(self) -> PIDFile:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
