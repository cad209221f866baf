"""
Timestamp helpers for RFC 3339 values returned by Google APIs.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

# Absent timestamps compare as "very old"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Google may return up to nanosecond precision; fromisoformat takes six digits
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


def parse_timestamp(value: str | None) -> datetime:
    """
    Parse an RFC 3339 timestamp such as '2024-01-01T12:00:00.123Z'.

    Args:
        value: Timestamp string from an API response, or None

    Returns:
        Timezone-aware datetime. EPOCH when the value is missing or unparseable.
    """
    if not value:
        return EPOCH

    text = _FRACTION_RE.sub(r".\1", value.strip()).replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return EPOCH

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
