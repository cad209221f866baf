"""
Google Sheets and Drive API wrapper for the roster spreadsheet.

Provides the operations the sheet writer needs:
- Reading the spreadsheet's last-modified time (Drive)
- Reading the last occupied row of a worksheet
- Writing and clearing rectangular value ranges
- Renaming the spreadsheet
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from roster_sync.utils.timestamps import parse_timestamp

# Values are written as-is, without formula or number parsing
VALUE_INPUT_OPTION = "RAW"

logger = logging.getLogger(__name__)


class SheetsAPIError(Exception):
    """Raised when a Sheets or Drive API operation fails."""

    pass


def column_letter(index: int) -> str:
    """
    Convert a 1-based column index to its A1 letter (1 -> A, 27 -> AA).
    """
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    label = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        label = chr(65 + remainder) + label
    return label


def a1_range(
    sheet_name: str,
    first_row: int,
    first_column: int,
    num_rows: int,
    num_columns: int,
) -> str:
    """
    Build an A1 range for a rectangular block.

    Example:
        a1_range("Contact List", 2, 1, 3, 7) -> "'Contact List'!A2:G4"
    """
    quoted = "'" + sheet_name.replace("'", "''") + "'"
    start = f"{column_letter(first_column)}{first_row}"
    end = (
        f"{column_letter(first_column + num_columns - 1)}{first_row + num_rows - 1}"
    )
    return f"{quoted}!{start}:{end}"


class SheetsAPI:
    """
    Google Sheets v4 / Drive v3 wrapper.

    Usage:
        api = SheetsAPI(credentials)

        modified = api.get_last_updated(spreadsheet_id)
        last_row = api.get_last_row(spreadsheet_id, "Contact List")
        api.write_values(spreadsheet_id, "'Contact List'!A2:G3", rows)
    """

    def __init__(self, credentials: Credentials):
        """
        Initialize the wrapper.

        Args:
            credentials: OAuth2 credentials with spreadsheets and drive
                        metadata scopes
        """
        self.credentials = credentials
        self._sheets_service = None
        self._drive_service = None

    @property
    def sheets_service(self) -> Any:
        """Get or create the Sheets API service object."""
        if self._sheets_service is None:
            self._sheets_service = self._build("sheets", "v4")
        return self._sheets_service

    @property
    def drive_service(self) -> Any:
        """Get or create the Drive API service object."""
        if self._drive_service is None:
            self._drive_service = self._build("drive", "v3")
        return self._drive_service

    def _build(self, name: str, version: str) -> Any:
        try:
            service = build(
                name, version, credentials=self.credentials, cache_discovery=False
            )
            logger.debug(f"Created {name} {version} API service")
            return service
        except Exception as e:
            logger.error(f"Failed to create {name} API service: {e}")
            raise SheetsAPIError(f"Failed to create {name} API service: {e}") from e

    def _execute(self, operation: Callable[[], Any], operation_name: str) -> Any:
        try:
            return operation()
        except HttpError as e:
            logger.error(f"{operation_name} failed with status {e.resp.status}: {e}")
            raise SheetsAPIError(f"{operation_name} failed: {e}") from e

    def get_last_updated(self, spreadsheet_id: str) -> datetime:
        """
        Get the time the spreadsheet file was last modified.

        Returns:
            Timezone-aware modification time (EPOCH if Drive omits it)

        Raises:
            SheetsAPIError: If the file metadata cannot be read
        """

        def execute_get() -> Any:
            return (
                self.drive_service.files()
                .get(fileId=spreadsheet_id, fields="modifiedTime")
                .execute()
            )

        response = self._execute(execute_get, "get_last_updated")
        return parse_timestamp(response.get("modifiedTime"))

    def get_last_row(
        self, spreadsheet_id: str, sheet_name: str, num_columns: int = 7
    ) -> int:
        """
        Get the last row holding content in the first num_columns columns.

        Returns:
            1-based row number, or 0 for an empty worksheet

        Raises:
            SheetsAPIError: If the values cannot be read
        """
        quoted = "'" + sheet_name.replace("'", "''") + "'"
        range_spec = f"{quoted}!A:{column_letter(num_columns)}"

        def execute_get() -> Any:
            return (
                self.sheets_service.spreadsheets()
                .values()
                .get(
                    spreadsheetId=spreadsheet_id,
                    range=range_spec,
                    majorDimension="ROWS",
                )
                .execute()
            )

        response = self._execute(execute_get, "get_last_row")
        values = response.get("values", [])
        # Trailing empty rows are omitted by the API, inner ones come back as []
        for index in range(len(values), 0, -1):
            if any(str(cell) for cell in values[index - 1]):
                return index
        return 0

    def write_values(
        self, spreadsheet_id: str, range_spec: str, rows: Sequence[Sequence[str]]
    ) -> int:
        """
        Write a rectangular block of values.

        Returns:
            Number of cells updated

        Raises:
            SheetsAPIError: If the write fails
        """
        body = {"majorDimension": "ROWS", "values": [list(row) for row in rows]}

        def execute_update() -> Any:
            return (
                self.sheets_service.spreadsheets()
                .values()
                .update(
                    spreadsheetId=spreadsheet_id,
                    range=range_spec,
                    valueInputOption=VALUE_INPUT_OPTION,
                    body=body,
                )
                .execute()
            )

        response = self._execute(execute_update, "write_values")
        updated: int = response.get("updatedCells", 0)
        logger.debug(f"Wrote {len(rows)} rows to {range_spec}")
        return updated

    def clear_values(self, spreadsheet_id: str, range_spec: str) -> None:
        """
        Clear the content (not the formatting) of a range.

        Raises:
            SheetsAPIError: If the clear fails
        """

        def execute_clear() -> Any:
            return (
                self.sheets_service.spreadsheets()
                .values()
                .clear(spreadsheetId=spreadsheet_id, range=range_spec, body={})
                .execute()
            )

        self._execute(execute_clear, "clear_values")
        logger.debug(f"Cleared {range_spec}")

    def rename(self, spreadsheet_id: str, title: str) -> None:
        """
        Rename the spreadsheet.

        Raises:
            SheetsAPIError: If the update fails
        """
        body = {
            "requests": [
                {
                    "updateSpreadsheetProperties": {
                        "properties": {"title": title},
                        "fields": "title",
                    }
                }
            ]
        }

        def execute_rename() -> Any:
            return (
                self.sheets_service.spreadsheets()
                .batchUpdate(spreadsheetId=spreadsheet_id, body=body)
                .execute()
            )

        self._execute(execute_rename, "rename")
        logger.info(f"Renamed spreadsheet to '{title}'")
