"""
roster_sync.daemon - Periodic sync scheduling

Runs the roster sync at a configurable interval with signal handling.
"""

import re

_INTERVAL_RE = re.compile(r"^(\d+)\s*([smhd])$")

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_interval(interval: str | int) -> int:
    """Parse an interval into seconds.

    Accepts a plain number of seconds or a number with a unit suffix:
    "30s", "5m", "1h", "1d", 3600, "3600".

    Raises:
        ValueError: If the interval is not positive or not understood.
    """
    if isinstance(interval, bool):
        raise ValueError("Invalid interval type: bool. Expected str or int.")

    if isinstance(interval, int):
        seconds = interval
    elif isinstance(interval, str):
        text = interval.lower().strip()
        if text.isdigit():
            seconds = int(text)
        else:
            match = _INTERVAL_RE.match(text)
            if not match:
                raise ValueError(
                    f"Invalid interval format: '{interval}'. "
                    "Use format like '30s', '5m', '1h', or '1d'."
                )
            seconds = int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    else:
        raise ValueError(
            f"Invalid interval type: {type(interval).__name__}. Expected str or int."
        )

    if seconds <= 0:
        raise ValueError(f"Interval must be positive, got {interval!r}")
    return seconds


from roster_sync.daemon.scheduler import (  # noqa: E402
    DEFAULT_PID_FILE,
    DaemonAlreadyRunningError,
    DaemonError,
    DaemonScheduler,
    DaemonStats,
)

__all__ = [
    "parse_interval",
    "DaemonScheduler",
    "DaemonStats",
    "DaemonError",
    "DaemonAlreadyRunningError",
    "DEFAULT_PID_FILE",
]
