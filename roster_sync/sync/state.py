"""
Per-run sync state.

Nothing here is persisted except the sync token, which the change detector
writes back to the property store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class SyncState:
    """
    State read at the start of a run.

    Attributes:
        spreadsheet_id: Destination spreadsheet
        sync_token: Connections sync token from the previous run, if any
        sheet_last_updated: Destination's last-modified time
        last_row: Last occupied row of the roster worksheet (0 if empty)
    """

    spreadsheet_id: str
    sync_token: Optional[str]
    sheet_last_updated: datetime
    last_row: int
