"""
Capability protocols for the external collaborators of a sync run.

PeopleAPI, SheetsAPI and PropertyStore satisfy these structurally; tests
substitute in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Optional, Protocol

from roster_sync.api.people_api import ConnectionChanges


class DirectoryService(Protocol):
    """Read access to contact groups and people."""

    def get_contact_group(
        self, resource_name: str, max_members: int = ...
    ) -> dict[str, Any]: ...

    def list_contact_groups(self) -> list[dict[str, Any]]: ...

    def batch_get_people(
        self, resource_names: Sequence[str], person_fields: str
    ) -> list[dict[str, Any]]: ...

    def list_connection_changes(
        self, sync_token: Optional[str] = None
    ) -> ConnectionChanges: ...


class SpreadsheetSink(Protocol):
    """Destination spreadsheet operations."""

    def get_last_updated(self, spreadsheet_id: str) -> datetime: ...

    def get_last_row(
        self, spreadsheet_id: str, sheet_name: str, num_columns: int = ...
    ) -> int: ...

    def write_values(
        self, spreadsheet_id: str, range_spec: str, rows: Sequence[Sequence[str]]
    ) -> int: ...

    def clear_values(self, spreadsheet_id: str, range_spec: str) -> None: ...

    def rename(self, spreadsheet_id: str, title: str) -> None: ...


class ConfigurationStore(Protocol):
    """String key-value properties."""

    def get_property(
        self, key: str, default: Optional[str] = None
    ) -> Optional[str]: ...

    def set_property(self, key: str, value: str) -> None: ...
