"""
Tests for the SQLite property store.
"""

import sqlite3

import pytest

from roster_sync.storage.properties import (
    CONNECTIONS_SYNC_TOKEN,
    CONTACTS_SPREADSHEET_ID,
    KNOWN_PROPERTIES,
    PropertyStore,
    PropertyStoreError,
)


class TestPropertyStoreInitialization:
    """Tests for store creation."""

    def test_initialize_creates_table(self, tmp_path):
        db_path = tmp_path / "properties.db"
        store = PropertyStore(str(db_path))

        store.initialize()

        conn = sqlite3.connect(db_path)
        tables = {
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        conn.close()
        assert "properties" in tables

    def test_initialize_is_idempotent(self, tmp_path):
        store = PropertyStore(str(tmp_path / "properties.db"))
        store.initialize()
        store.set_property(CONTACTS_SPREADSHEET_ID, "abc")

        store.initialize()

        assert store.get_property(CONTACTS_SPREADSHEET_ID) == "abc"

    def test_in_memory_keeps_schema(self):
        """In-memory stores share one connection so the table survives."""
        store = PropertyStore(":memory:")
        store.initialize()

        store.set_property("KEY", "value")

        assert store.get_property("KEY") == "value"

    def test_unopenable_path_raises(self, tmp_path):
        store = PropertyStore(str(tmp_path / "missing" / "properties.db"))

        with pytest.raises(PropertyStoreError):
            store.initialize()

    def test_known_properties(self):
        assert CONNECTIONS_SYNC_TOKEN in KNOWN_PROPERTIES
        assert len(KNOWN_PROPERTIES) == 6


class TestPropertyOperations:
    """Tests for get/set/delete/list."""

    @pytest.fixture
    def store(self):
        store = PropertyStore(":memory:")
        store.initialize()
        return store

    def test_missing_returns_default(self, store):
        assert store.get_property(CONTACTS_SPREADSHEET_ID) is None
        assert store.get_property(CONTACTS_SPREADSHEET_ID, "fallback") == "fallback"

    def test_set_and_get(self, store):
        store.set_property(CONNECTIONS_SYNC_TOKEN, "token-1")

        assert store.get_property(CONNECTIONS_SYNC_TOKEN) == "token-1"

    def test_set_replaces(self, store):
        store.set_property(CONNECTIONS_SYNC_TOKEN, "token-1")
        store.set_property(CONNECTIONS_SYNC_TOKEN, "token-2")

        assert store.get_property(CONNECTIONS_SYNC_TOKEN) == "token-2"
        assert store.get_properties() == {CONNECTIONS_SYNC_TOKEN: "token-2"}

    def test_delete(self, store):
        store.set_property(CONNECTIONS_SYNC_TOKEN, "token-1")

        assert store.delete_property(CONNECTIONS_SYNC_TOKEN) is True
        assert store.delete_property(CONNECTIONS_SYNC_TOKEN) is False
        assert store.get_property(CONNECTIONS_SYNC_TOKEN) is None

    def test_get_properties_sorted(self, store):
        store.set_property("B", "2")
        store.set_property("A", "1")

        assert list(store.get_properties().items()) == [("A", "1"), ("B", "2")]

    def test_persists_across_instances(self, tmp_path):
        db_path = str(tmp_path / "properties.db")
        first = PropertyStore(db_path)
        first.initialize()
        first.set_property(CONTACTS_SPREADSHEET_ID, "abc")

        second = PropertyStore(db_path)

        assert second.get_property(CONTACTS_SPREADSHEET_ID) == "abc"
