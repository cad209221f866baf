"""
SQLite-backed key-value property store.

Holds the small amount of state that survives between runs: the destination
spreadsheet id, per-group contact group resource names, and the connections
sync token used for incremental change detection.
"""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

# Recognized property keys
CONTACTS_SPREADSHEET_ID = "CONTACTS_SPREADSHEET_ID"
CONNECTIONS_SYNC_TOKEN = "CONNECTIONS_SYNC_TOKEN"
RESOURCE_NAME_ACTIVE = "RESOURCE_NAME_ACTIVE"
RESOURCE_NAME_GUEST = "RESOURCE_NAME_GUEST"
RESOURCE_NAME_STUDENT = "RESOURCE_NAME_STUDENT"
RESOURCE_NAME_INACTIVE = "RESOURCE_NAME_INACTIVE"

KNOWN_PROPERTIES = (
    CONTACTS_SPREADSHEET_ID,
    CONNECTIONS_SYNC_TOKEN,
    RESOURCE_NAME_ACTIVE,
    RESOURCE_NAME_GUEST,
    RESOURCE_NAME_STUDENT,
    RESOURCE_NAME_INACTIVE,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS properties (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP
);
"""


class PropertyStoreError(Exception):
    """Raised when the property store cannot be read or written."""

    pass


class PropertyStore:
    """
    String key-value store backed by SQLite.

    Usage:
        store = PropertyStore('/path/to/properties.db')
        store.initialize()

        token = store.get_property(CONNECTIONS_SYNC_TOKEN)
        store.set_property(CONNECTIONS_SYNC_TOKEN, next_token)

        # Or use in-memory for testing:
        store = PropertyStore(':memory:')
        store.initialize()
    """

    def __init__(self, db_path: str):
        """
        Initialize the property store.

        Args:
            db_path: Path to SQLite database file, or ':memory:' for in-memory
        """
        self.db_path = db_path
        self._shared_connection: Optional[sqlite3.Connection] = None

    def _get_connection(self) -> sqlite3.Connection:
        # In-memory databases share one connection so the schema persists
        if self.db_path == ":memory:":
            if self._shared_connection is None:
                self._shared_connection = sqlite3.connect(":memory:")
                self._shared_connection.row_factory = sqlite3.Row
            return self._shared_connection

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        Commits on success, rolls back on error.

        Raises:
            PropertyStoreError: If the underlying database operation fails
        """
        try:
            conn = self._get_connection()
        except sqlite3.Error as e:
            raise PropertyStoreError(
                f"Failed to open property store {self.db_path}: {e}"
            ) from e

        is_shared = self.db_path == ":memory:"
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PropertyStoreError(f"Property store operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            if not is_shared:
                conn.close()

    def initialize(self) -> None:
        """Create the properties table if it doesn't exist."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a property value.

        Args:
            key: Property name
            default: Value returned when the property is not set

        Returns:
            Stored string value, or default
        """
        with self.connection() as conn:
            row = conn.execute(
                "SELECT value FROM properties WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return default
            value: str = row["value"]
            return value

    def set_property(self, key: str, value: str) -> None:
        """
        Insert or replace a property value.

        Args:
            key: Property name
            value: String value to store
        """
        with self.connection() as conn:
            conn.execute(
                """
                INSERT INTO properties (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now(timezone.utc).isoformat()),
            )

    def delete_property(self, key: str) -> bool:
        """
        Remove a property.

        Returns:
            True if the property existed, False otherwise
        """
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM properties WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def get_properties(self) -> dict[str, str]:
        """
        Get every stored property.

        Returns:
            Mapping of property name to value, sorted by name
        """
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT key, value FROM properties ORDER BY key"
            ).fetchall()
            return {row["key"]: row["value"] for row in rows}
