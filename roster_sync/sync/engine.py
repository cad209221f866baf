"""
Sync engine for the contacts roster spreadsheet.

One run: resolve the destination, read its last-modified time and row
count, read the roster groups from the directory, ask the change detector
whether anything changed, and if so clear and rewrite the sheet and rename
the spreadsheet for the current year.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from roster_sync.api.people_api import MAX_GROUP_MEMBERS
from roster_sync.config.loader import DEFAULT_SHEET_NAME, DEFAULT_TITLE_PREFIX
from roster_sync.storage.properties import (
    CONNECTIONS_SYNC_TOKEN,
    CONTACTS_SPREADSHEET_ID,
)
from roster_sync.sync.detector import ChangeDetector, ChangeReport
from roster_sync.sync.formatter import NUM_COLUMNS, Row, format_group
from roster_sync.sync.group import ROSTER_LABELS
from roster_sync.sync.interfaces import (
    ConfigurationStore,
    DirectoryService,
    SpreadsheetSink,
)
from roster_sync.sync.reader import (
    DirectoryReader,
    GroupSnapshot,
    configured_identifiers,
)
from roster_sync.sync.state import SyncState
from roster_sync.sync.writer import SheetWriter, WriteSummary

logger = logging.getLogger(__name__)


class RosterSyncError(Exception):
    """Raised when a sync run cannot start."""

    pass


def spreadsheet_title(prefix: str, now: datetime) -> str:
    """Title given to the spreadsheet after an update, e.g. 'Contacts 2024'."""
    return f"{prefix} {now.year}"


@dataclass
class SyncResult:
    """
    Result of a sync run.

    Attributes:
        spreadsheet_id: Destination that was checked
        update_needed: True if the change gate opened
        forced: True if the run was forced
        reason: Why the gate opened or stayed closed
        changed_connections: Change count from the connections listing
        people_read: People read per label (0 for absent groups)
        absent_groups: Labels whose group could not be read
        write: What the writer did (None when nothing was written)
        new_title: Title set on the spreadsheet, if renamed
    """

    spreadsheet_id: str
    update_needed: bool = False
    forced: bool = False
    reason: str = ""
    changed_connections: int = 0
    people_read: dict[str, int] = field(default_factory=dict)
    absent_groups: list[str] = field(default_factory=list)
    write: Optional[WriteSummary] = None
    new_title: Optional[str] = None

    @property
    def rows_written(self) -> int:
        return self.write.total_rows if self.write else 0

    def has_changes(self) -> bool:
        """Check if the sheet was modified by this run."""
        return self.rows_written > 0

    def summary(self) -> str:
        """
        Generate a human-readable summary of the run.

        Returns:
            Multi-line summary text
        """
        lines = ["Sync Summary:", f"  Spreadsheet: {self.spreadsheet_id}"]
        for label in ROSTER_LABELS:
            if label in self.absent_groups:
                lines.append(f"  {label}: group not available")
            else:
                lines.append(f"  {label}: {self.people_read.get(label, 0)} contacts")
        lines.append("")

        if not self.update_needed:
            lines.append(f"No update needed ({self.reason}).")
            return "\n".join(lines)

        lines.append(f"Update needed ({self.reason}).")
        if self.write is None or not self.has_changes():
            lines.append("No rows to write; sheet left unchanged.")
            return "\n".join(lines)

        for label in ROSTER_LABELS:
            count = self.write.rows_written.get(label, 0)
            if count:
                start = self.write.start_rows[label]
                lines.append(f"  Wrote {count} {label} rows at row {start}")
        if self.new_title:
            lines.append(f"  Renamed spreadsheet to '{self.new_title}'")
        return "\n".join(lines)


class RosterSyncEngine:
    """
    Orchestrates a roster sync run.

    Usage:
        engine = RosterSyncEngine(
            directory=people_api,
            sink=sheets_api,
            store=property_store,
            default_spreadsheet_id=config.get("spreadsheet_id"),
        )
        result = engine.sync(force=False)
        print(result.summary())
    """

    def __init__(
        self,
        directory: DirectoryService,
        sink: SpreadsheetSink,
        store: ConfigurationStore,
        default_spreadsheet_id: Optional[str] = None,
        sheet_name: str = DEFAULT_SHEET_NAME,
        title_prefix: str = DEFAULT_TITLE_PREFIX,
        max_members: int = MAX_GROUP_MEMBERS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the engine.

        Args:
            directory: Directory service (People API)
            sink: Spreadsheet sink (Sheets/Drive API)
            store: Property store holding ids and the sync token
            default_spreadsheet_id: Destination used when the
                CONTACTS_SPREADSHEET_ID property is not set
            sheet_name: Worksheet receiving the roster
            title_prefix: Prefix of the title set after an update
            max_members: Member bound per group fetch
            clock: Source of the current time (for the title year)
        """
        self.directory = directory
        self.sink = sink
        self.store = store
        self.default_spreadsheet_id = default_spreadsheet_id
        self.sheet_name = sheet_name
        self.title_prefix = title_prefix
        self.clock = clock
        self.reader = DirectoryReader(directory, max_members=max_members)
        self.detector = ChangeDetector(directory, store)

    def resolve_spreadsheet_id(self) -> str:
        """
        Get the destination spreadsheet id.

        Raises:
            RosterSyncError: If neither the property nor a default is set
        """
        spreadsheet_id = (
            self.store.get_property(CONTACTS_SPREADSHEET_ID)
            or self.default_spreadsheet_id
        )
        if not spreadsheet_id:
            raise RosterSyncError(
                "No destination spreadsheet configured. Set the "
                f"{CONTACTS_SPREADSHEET_ID} property or 'spreadsheet_id' "
                "in config.yaml."
            )
        return spreadsheet_id

    def load_state(self) -> SyncState:
        """Read the run state from the property store and the destination."""
        spreadsheet_id = self.resolve_spreadsheet_id()
        state = SyncState(
            spreadsheet_id=spreadsheet_id,
            sync_token=self.store.get_property(CONNECTIONS_SYNC_TOKEN),
            sheet_last_updated=self.sink.get_last_updated(spreadsheet_id),
            last_row=self.sink.get_last_row(
                spreadsheet_id, self.sheet_name, NUM_COLUMNS
            ),
        )
        logger.debug(
            f"Destination {spreadsheet_id}: last updated "
            f"{state.sheet_last_updated.isoformat()}, last row {state.last_row}"
        )
        return state

    def read_groups(self) -> dict[str, GroupSnapshot]:
        """Resolve the configured groups and read them from the directory."""
        resource_names = self.reader.resolve_groups(configured_identifiers(self.store))
        return self.reader.read_all(resource_names)

    def sync(self, force: bool = False) -> SyncResult:
        """
        Run one sync.

        Args:
            force: Rewrite the sheet even if nothing changed

        Returns:
            SyncResult describing the run

        Raises:
            RosterSyncError: If no destination is configured
            PeopleAPIError: If the connections listing fails
            SheetsAPIError: If reading or writing the destination fails
        """
        state = self.load_state()
        snapshots = self.read_groups()

        result = SyncResult(spreadsheet_id=state.spreadsheet_id, forced=force)
        for label, snapshot in snapshots.items():
            result.people_read[label] = len(snapshot.people)
            if not snapshot.present:
                result.absent_groups.append(label)

        report: ChangeReport = self.detector.detect(state, snapshots, force=force)
        result.update_needed = report.update_needed
        result.reason = report.reason
        result.changed_connections = report.changed_connections

        if not report.update_needed:
            return result

        blocks: dict[str, list[Row]] = {
            label: format_group(snapshot.people, label)
            for label, snapshot in snapshots.items()
        }

        writer = SheetWriter(self.sink, state.spreadsheet_id, self.sheet_name)
        result.write = writer.write_groups(blocks, state.last_row)

        if result.write.total_rows > 0:
            title = spreadsheet_title(self.title_prefix, self.clock())
            writer.rename(title)
            result.new_title = title

        logger.info(
            f"Sync finished: {result.rows_written} rows written "
            f"to {state.spreadsheet_id}"
        )
        return result
