"""
roster_sync.storage - Persistent key-value properties.
"""

from roster_sync.storage.properties import (
    CONNECTIONS_SYNC_TOKEN,
    CONTACTS_SPREADSHEET_ID,
    KNOWN_PROPERTIES,
    RESOURCE_NAME_ACTIVE,
    RESOURCE_NAME_GUEST,
    RESOURCE_NAME_INACTIVE,
    RESOURCE_NAME_STUDENT,
    PropertyStore,
    PropertyStoreError,
)

__all__ = [
    "PropertyStore",
    "PropertyStoreError",
    "KNOWN_PROPERTIES",
    "CONTACTS_SPREADSHEET_ID",
    "CONNECTIONS_SYNC_TOKEN",
    "RESOURCE_NAME_ACTIVE",
    "RESOURCE_NAME_GUEST",
    "RESOURCE_NAME_STUDENT",
    "RESOURCE_NAME_INACTIVE",
]
