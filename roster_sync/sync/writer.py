"""
Sheet writer: lays out group row blocks on the roster worksheet.

Row 1 holds the header and is never touched. Data starts at row 2, each
group's rows form one contiguous block, and a blank row separates blocks.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from roster_sync.api.sheets_api import a1_range
from roster_sync.config.loader import DEFAULT_SHEET_NAME
from roster_sync.sync.formatter import NUM_COLUMNS, Row
from roster_sync.sync.group import ROSTER_LABELS
from roster_sync.sync.interfaces import SpreadsheetSink

HEADER_ROW = 1
FIRST_DATA_ROW = 2
FIRST_COLUMN = 1

# Rows consumed after a block beyond its own rows: the block's last row
# index plus one blank separator
BLOCK_ADVANCE = 2

logger = logging.getLogger(__name__)


@dataclass
class WriteSummary:
    """
    What a write pass did to the sheet.

    Attributes:
        cleared: True if the old data region was cleared
        start_rows: First row of each label's block (written labels only)
        rows_written: Rows written per label (0 for empty groups)
        next_row: Cursor after the last block
    """

    cleared: bool = False
    start_rows: dict[str, int] = field(default_factory=dict)
    rows_written: dict[str, int] = field(default_factory=dict)
    next_row: int = FIRST_DATA_ROW

    @property
    def total_rows(self) -> int:
        return sum(self.rows_written.values())


class SheetWriter:
    """
    Writes roster blocks to one worksheet of the destination spreadsheet.

    Usage:
        writer = SheetWriter(sheets_api, spreadsheet_id)
        summary = writer.write_groups(blocks, last_row=state.last_row)
        if summary.total_rows:
            writer.rename("Contacts 2024")
    """

    def __init__(
        self,
        sink: SpreadsheetSink,
        spreadsheet_id: str,
        sheet_name: str = DEFAULT_SHEET_NAME,
    ):
        self.sink = sink
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name

    def write(self, rows: Sequence[Row], start_row: int) -> int:
        """
        Write rows as one block starting at (start_row, column A).

        Args:
            rows: Rows of exactly NUM_COLUMNS fields
            start_row: First sheet row of the block

        Returns:
            Row where the next block starts. start_row itself when rows is
            empty, since nothing is written.
        """
        if not rows:
            return start_row

        range_spec = a1_range(
            self.sheet_name, start_row, FIRST_COLUMN, len(rows), NUM_COLUMNS
        )
        self.sink.write_values(self.spreadsheet_id, range_spec, rows)
        return start_row + len(rows) + BLOCK_ADVANCE

    def clear_data_region(self, last_row: int) -> bool:
        """
        Clear the content of rows 2..last_row across the roster columns.

        Returns:
            True if a clear was issued, False if there was no data region
        """
        if last_row <= HEADER_ROW:
            return False

        range_spec = a1_range(
            self.sheet_name,
            FIRST_DATA_ROW,
            FIRST_COLUMN,
            last_row - HEADER_ROW,
            NUM_COLUMNS,
        )
        self.sink.clear_values(self.spreadsheet_id, range_spec)
        logger.info(f"Cleared existing rows {FIRST_DATA_ROW}-{last_row}")
        return True

    def write_groups(
        self, blocks: Mapping[str, Sequence[Row]], last_row: int
    ) -> WriteSummary:
        """
        Replace the data region with the given blocks.

        When every block is empty the sheet is left untouched. Otherwise the
        old data region is cleared once, then blocks are written in roster
        order (Active, Guest, Student, Inactive).

        Args:
            blocks: Rows per label
            last_row: Last occupied row before this write

        Returns:
            WriteSummary of the pass
        """
        summary = WriteSummary()
        if not any(blocks.get(label) for label in ROSTER_LABELS):
            logger.info("No rows to write; leaving the sheet unchanged")
            return summary

        summary.cleared = self.clear_data_region(last_row)

        cursor = FIRST_DATA_ROW
        for label in ROSTER_LABELS:
            rows = blocks.get(label, [])
            summary.rows_written[label] = len(rows)
            if rows:
                summary.start_rows[label] = cursor
                logger.info(f"Writing {len(rows)} {label} rows at row {cursor}")
            cursor = self.write(rows, cursor)

        summary.next_row = cursor
        return summary

    def rename(self, title: str) -> None:
        """Rename the destination spreadsheet."""
        self.sink.rename(self.spreadsheet_id, title)
