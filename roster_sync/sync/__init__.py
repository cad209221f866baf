"""
roster_sync.sync - Roster synchronization core

Directory reading, change detection, row formatting and sheet writing.
"""

from roster_sync.sync.detector import ChangeDetector, ChangeReport
from roster_sync.sync.engine import (
    RosterSyncEngine,
    RosterSyncError,
    SyncResult,
    spreadsheet_title,
)
from roster_sync.sync.formatter import HEADER, Row, format_group, format_person
from roster_sync.sync.group import ROSTER_LABELS, ContactGroup
from roster_sync.sync.lock import RunLock, RunLockError
from roster_sync.sync.person import Person, PostalAddress
from roster_sync.sync.reader import DirectoryReader, GroupSnapshot
from roster_sync.sync.state import SyncState
from roster_sync.sync.writer import SheetWriter, WriteSummary

__all__ = [
    "ChangeDetector",
    "ChangeReport",
    "ContactGroup",
    "DirectoryReader",
    "GroupSnapshot",
    "HEADER",
    "Person",
    "PostalAddress",
    "ROSTER_LABELS",
    "RosterSyncEngine",
    "RosterSyncError",
    "Row",
    "RunLock",
    "RunLockError",
    "SheetWriter",
    "SyncResult",
    "SyncState",
    "WriteSummary",
    "format_group",
    "format_person",
    "spreadsheet_title",
]
