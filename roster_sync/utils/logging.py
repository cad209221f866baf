"""
Logging setup for the roster-sync CLI and daemon.

Everything logs under the ``roster_sync`` logger. Console output goes to
stderr at the requested level; a daily file under ``<config dir>/logs``
records DEBUG and above so a failed unattended run can be inspected later.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from roster_sync.utils.paths import resolve_config_dir

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
VERBOSE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ENV_LOG_LEVEL = "ROSTER_SYNC_LOG_LEVEL"
ENV_DEBUG = "ROSTER_SYNC_DEBUG"
ENV_LOG_FILE = "ROSTER_SYNC_LOG_FILE"

ROOT_LOGGER_NAME = "roster_sync"
LOG_FILE_PREFIX = "roster_sync_"
LOG_DIR_NAME = "logs"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def default_log_dir() -> Path:
    return resolve_config_dir() / LOG_DIR_NAME


class ColoredFormatter(logging.Formatter):
    """Console formatter that tints each record by level on a color terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        if not hasattr(sys.stderr, "isatty") or not sys.stderr.isatty():
            return False
        # https://no-color.org/
        if os.environ.get("NO_COLOR"):
            return False
        return os.environ.get("TERM", "") != "dumb"

    def format(self, record: logging.LogRecord) -> str:
        # Copy so the file handler still sees the plain record
        record = logging.makeLogRecord(record.__dict__)

        if self.use_colors and record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            record.levelname = f"{color}{record.levelname}{self.RESET}"
            record.msg = f"{color}{record.msg}{self.RESET}"

        return super().format(record)


def get_log_level_from_env() -> int:
    """
    Console level from ROSTER_SYNC_DEBUG, else ROSTER_SYNC_LOG_LEVEL.

    Unknown level names fall back to INFO.
    """
    if os.environ.get(ENV_DEBUG, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG
    return _LEVELS.get(os.environ.get(ENV_LOG_LEVEL, "INFO").upper(), logging.INFO)


def _daily_log_name() -> str:
    return f"{LOG_FILE_PREFIX}{datetime.now().strftime('%Y%m%d')}.log"


def get_log_file_path(log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Where today's log goes.

    ROSTER_SYNC_LOG_FILE names the file outright, or turns file logging off
    with ``none``, ``disabled`` or an empty value.
    """
    log_file = os.environ.get(ENV_LOG_FILE)
    if log_file is not None:
        if log_file.lower() in ("none", "disabled", ""):
            return None
        return Path(log_file)

    return (log_dir or default_log_dir()) / _daily_log_name()


def setup_logging(
    level: Optional[int] = None,
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    log_file: Optional[Path] = None,
    enable_file_logging: bool = True,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Install the console and file handlers on the ``roster_sync`` logger.

    Calling it again replaces the handlers rather than adding to them.

    Args:
        level: Console level; read from the environment when None
        verbose: Force DEBUG and show source locations on the console
        log_dir: Directory for the daily log file
        log_file: Exact log file, overriding log_dir
        enable_file_logging: Skip the file handler when False
        use_colors: Color console output on terminals that allow it

    Returns:
        The ``roster_sync`` logger
    """
    if level is None:
        level = get_log_level_from_env()
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    console_format = VERBOSE_FORMAT if verbose else CONSOLE_FORMAT
    console_formatter: logging.Formatter
    if use_colors:
        console_formatter = ColoredFormatter(console_format, DATE_FORMAT)
    else:
        console_formatter = logging.Formatter(console_format, DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if not enable_file_logging:
        return logger

    file_path = log_file or get_log_file_path(log_dir)
    if file_path:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(file_path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT, DATE_FORMAT))
            logger.addHandler(file_handler)
            logger.debug(f"Log file: {file_path}")
        except OSError as e:
            logger.warning(f"Could not create log file {file_path}: {e}")

    return logger


def cleanup_old_logs(log_dir: Optional[Path] = None, keep_count: int = 10) -> int:
    """
    Delete all but the newest ``keep_count`` daily logs.

    Only files named like the daily logs are touched. A keep_count of 0
    leaves everything in place.

    Returns:
        Number of files deleted
    """
    if keep_count <= 0:
        return 0

    logs_dir = log_dir or default_log_dir()
    if not logs_dir.exists():
        return 0

    daily_logs = sorted(
        logs_dir.glob(f"{LOG_FILE_PREFIX}*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    deleted = 0
    for old_log in daily_logs[keep_count:]:
        try:
            old_log.unlink()
            deleted += 1
        except OSError as e:
            logging.getLogger(ROOT_LOGGER_NAME).debug(
                f"Could not remove old log {old_log}: {e}"
            )

    return deleted


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name``, placed under ``roster_sync`` if it isn't already."""
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


__all__ = [
    "setup_logging",
    "get_logger",
    "cleanup_old_logs",
    "ColoredFormatter",
    "get_log_level_from_env",
    "get_log_file_path",
    "default_log_dir",
    "CONSOLE_FORMAT",
    "VERBOSE_FORMAT",
    "DATE_FORMAT",
]
