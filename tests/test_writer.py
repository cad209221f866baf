"""
Tests for the sheet writer.

Covers row-block cursor accounting, the single clear of the data region and
the no-op when every block is empty.
"""

from roster_sync.sync.writer import FIRST_DATA_ROW, SheetWriter

ROW = ("Doe, John", "", "Active", "", "", "a@x.com", "")


def rows(n, label="Active"):
    return [(f"Person {i}", "", label, "", "", "", "") for i in range(n)]


class TestWrite:
    """Tests for SheetWriter.write."""

    def test_single_row_block(self, sheet):
        """One row at row 2 is written to A2:G2 and moves the cursor to 5."""
        writer = SheetWriter(sheet, "sheet-1")

        next_row = writer.write([ROW], 2)

        assert next_row == 5
        assert sheet.writes == [("'Contact List'!A2:G2", [list(ROW)])]

    def test_cursor_is_start_plus_rows_plus_two(self, sheet):
        writer = SheetWriter(sheet, "sheet-1")

        assert writer.write(rows(3), 10) == 15
        assert sheet.writes[0][0] == "'Contact List'!A10:G12"

    def test_empty_rows_write_nothing(self, sheet):
        """An empty block neither writes nor moves the cursor."""
        writer = SheetWriter(sheet, "sheet-1")

        assert writer.write([], 7) == 7
        assert sheet.writes == []

    def test_custom_sheet_name(self, sheet):
        writer = SheetWriter(sheet, "sheet-1", sheet_name="Roster")

        writer.write([ROW], 2)

        assert sheet.writes[0][0] == "'Roster'!A2:G2"


class TestClearDataRegion:
    """Tests for SheetWriter.clear_data_region."""

    def test_clears_rows_two_to_last(self, sheet):
        writer = SheetWriter(sheet, "sheet-1")

        assert writer.clear_data_region(9) is True
        assert sheet.clears == ["'Contact List'!A2:G9"]

    def test_header_only_sheet_not_cleared(self, sheet):
        """With nothing below the header there is nothing to clear."""
        writer = SheetWriter(sheet, "sheet-1")

        assert writer.clear_data_region(1) is False
        assert writer.clear_data_region(0) is False
        assert sheet.clears == []


class TestWriteGroups:
    """Tests for SheetWriter.write_groups."""

    def test_blocks_follow_each_other(self, sheet):
        """Each non-empty block starts two rows after the previous one ends."""
        writer = SheetWriter(sheet, "sheet-1")
        blocks = {
            "Active": rows(2),
            "Guest": rows(1, "Guest"),
            "Student": [],
            "Inactive": rows(3, "Inactive"),
        }

        summary = writer.write_groups(blocks, last_row=20)

        assert summary.start_rows == {"Active": 2, "Guest": 6, "Inactive": 9}
        assert summary.rows_written == {
            "Active": 2,
            "Guest": 1,
            "Student": 0,
            "Inactive": 3,
        }
        assert summary.next_row == 14
        assert summary.total_rows == 6
        assert [w[0] for w in sheet.writes] == [
            "'Contact List'!A2:G3",
            "'Contact List'!A6:G6",
            "'Contact List'!A9:G11",
        ]

    def test_clears_once_before_writing(self, sheet):
        writer = SheetWriter(sheet, "sheet-1")

        summary = writer.write_groups(
            {"Active": rows(1), "Guest": rows(1, "Guest")}, last_row=12
        )

        assert summary.cleared is True
        assert sheet.clears == ["'Contact List'!A2:G12"]

    def test_first_block_starts_at_row_two(self, sheet):
        """Row 1 (the header) is never written."""
        writer = SheetWriter(sheet, "sheet-1")

        summary = writer.write_groups({"Guest": rows(1, "Guest")}, last_row=0)

        assert summary.start_rows == {"Guest": FIRST_DATA_ROW}
        assert sheet.clears == []

    def test_all_empty_is_a_no_op(self, sheet):
        """Empty groups everywhere leave the sheet untouched, even the clear."""
        writer = SheetWriter(sheet, "sheet-1")

        summary = writer.write_groups(
            {"Active": [], "Guest": [], "Student": [], "Inactive": []}, last_row=30
        )

        assert summary.total_rows == 0
        assert summary.cleared is False
        assert not sheet.modified

    def test_roster_order_regardless_of_mapping_order(self, sheet):
        writer = SheetWriter(sheet, "sheet-1")

        writer.write_groups(
            {"Inactive": rows(1, "Inactive"), "Active": rows(1)}, last_row=0
        )

        assert [w[1][0][2] for w in sheet.writes] == ["Active", "Inactive"]

    def test_rename(self, sheet):
        SheetWriter(sheet, "sheet-1").rename("Contacts 2024")

        assert sheet.titles == ["Contacts 2024"]
