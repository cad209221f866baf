"""
Daemon scheduler for periodic roster synchronization.

Runs a sync callback on a fixed interval until SIGTERM or SIGINT, keeping a
PID file so only one daemon runs per configuration directory. A failed
cycle is logged and the next one runs on schedule.
"""

from __future__ import annotations

import logging
import os
import signal
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from roster_sync.utils.paths import DEFAULT_CONFIG_DIR
from roster_sync.utils.pidfile import PIDFile, PIDFileError, PIDFileLockedError

logger = logging.getLogger(__name__)

DEFAULT_PID_FILE = DEFAULT_CONFIG_DIR / "daemon.pid"

# Granularity of the interruptible sleep
SLEEP_STEP_SECONDS = 1.0


class DaemonError(Exception):
    """Base exception for daemon-related errors."""

    pass


class DaemonAlreadyRunningError(DaemonError):
    """Raised when attempting to start a daemon that is already running."""

    pass


@dataclass
class DaemonStats:
    """Counters for the daemon's lifetime."""

    started_at: datetime = field(default_factory=datetime.now)
    cycles: int = 0
    updates: int = 0
    failures: int = 0
    last_run_at: datetime | None = None
    last_error: str | None = None


class DaemonScheduler:
    """
    Periodic runner for the sync callback.

    The callback returns True when the run rewrote the sheet and False when
    nothing needed updating. Exceptions count as failed cycles.

    Usage:
        scheduler = DaemonScheduler(interval=3600)
        scheduler.set_sync_callback(lambda: run_sync().has_changes())
        scheduler.run()  # blocks until SIGTERM/SIGINT
    """

    def __init__(
        self,
        interval: int = 3600,
        pid_file: Path | None = None,
        run_immediately: bool = True,
    ):
        """
        Args:
            interval: Seconds between sync runs
            pid_file: PID file path (default ~/.roster-sync/daemon.pid)
            run_immediately: Run once on start before the first wait
        """
        self.interval = interval
        self.run_immediately = run_immediately
        self._pid_file = PIDFile(pid_file or DEFAULT_PID_FILE)
        self._sync_callback: Callable[[], bool] | None = None
        self._running = False
        self._shutdown_requested = False
        self._previous_handlers: dict[int, Any] = {}
        self.stats = DaemonStats()

    @property
    def pid_file(self) -> Path:
        return self._pid_file.path

    def set_sync_callback(self, callback: Callable[[], bool]) -> None:
        self._sync_callback = callback

    def _install_signal_handlers(self) -> None:
        for signum in (signal.SIGTERM, signal.SIGINT):
            self._previous_handlers[signum] = signal.signal(
                signum, self._signal_handler
            )

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            if handler is not None:
                signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _signal_handler(self, signum: int, frame: object) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, shutting down")
        self._shutdown_requested = True

    def run_cycle(self) -> bool:
        """
        Run the sync callback once and record the outcome.

        Returns:
            True if the cycle completed without an exception
        """
        if self._sync_callback is None:
            logger.warning("No sync callback configured, skipping cycle")
            return False

        self.stats.cycles += 1
        self.stats.last_run_at = datetime.now()
        logger.info(f"Starting sync cycle #{self.stats.cycles}")

        try:
            updated = self._sync_callback()
        except Exception as e:
            self.stats.failures += 1
            self.stats.last_error = str(e)
            logger.error(f"Sync cycle #{self.stats.cycles} failed: {e}")
            return False

        self.stats.last_error = None
        if updated:
            self.stats.updates += 1
        return True

    def _wait(self, seconds: float) -> bool:
        """
        Sleep until the next cycle, waking early on shutdown.

        Uses wall-clock time so a machine that was suspended runs the next
        cycle right after waking.

        Returns:
            False if shutdown was requested while waiting
        """
        deadline = time.time() + seconds
        while not self._shutdown_requested:
            remaining = deadline - time.time()
            if remaining <= 0:
                break
            time.sleep(min(SLEEP_STEP_SECONDS, remaining))
        return not self._shutdown_requested

    def run(self) -> None:
        """
        Run until a shutdown signal is received.

        Raises:
            DaemonAlreadyRunningError: If another daemon holds the PID file
            DaemonError: If the PID file cannot be managed
        """
        try:
            self._pid_file.acquire()
        except PIDFileLockedError as e:
            holder = f" with PID {e.pid}" if e.pid is not None else ""
            raise DaemonAlreadyRunningError(f"Daemon already running{holder}") from e
        except PIDFileError as e:
            raise DaemonError(str(e)) from e

        logger.info(
            f"Daemon started (PID {os.getpid()}, interval {self.interval}s, "
            f"PID file {self.pid_file})"
        )
        self._install_signal_handlers()
        self._running = True
        self._shutdown_requested = False
        self.stats = DaemonStats()

        try:
            if self.run_immediately:
                self.run_cycle()
            while self._wait(self.interval):
                self.run_cycle()
        finally:
            self._running = False
            self._restore_signal_handlers()
            self._pid_file.release()
            logger.info("Daemon stopped")

    def stop(self) -> None:
        """Request shutdown after the current cycle."""
        self._shutdown_requested = True

    def is_running(self) -> bool:
        return self._running

    @staticmethod
    def get_running_pid(pid_file: Path | None = None) -> int | None:
        """Get the PID of a live daemon, or None."""
        return PIDFile(pid_file or DEFAULT_PID_FILE).running_pid()

    @staticmethod
    def stop_running_daemon(pid_file: Path | None = None) -> bool:
        """
        Send SIGTERM to a live daemon.

        Returns:
            True if the signal was sent
        """
        pid = DaemonScheduler.get_running_pid(pid_file)
        if pid is None:
            logger.info("No running daemon found")
            return False

        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            logger.warning(f"Daemon process {pid} not found")
            return False
        except PermissionError:
            logger.error(f"Permission denied sending signal to PID {pid}")
            return False

        logger.info(f"Sent SIGTERM to daemon (PID {pid})")
        return True
