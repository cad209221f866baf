"""
Shared fixtures: in-memory stand-ins for the directory, the spreadsheet and
the property store.
"""

from datetime import datetime, timezone

import pytest

from roster_sync.api.people_api import ConnectionChanges, GroupNotFoundError
from roster_sync.utils.timestamps import EPOCH


def person_record(
    resource_name,
    name=None,
    emails=(),
    title=None,
    phone=None,
    address=None,
    updated=None,
):
    """Build a People API person resource for tests."""
    record = {"resourceName": resource_name}
    if name is not None:
        record["names"] = [{"displayNameLastFirst": name}]
    if emails:
        record["emailAddresses"] = [{"value": email} for email in emails]
    if title is not None:
        record["organizations"] = [{"title": title}]
    if phone is not None:
        record["phoneNumbers"] = [{"value": phone}]
    if address is not None:
        record["addresses"] = [address]
    if updated is not None:
        record["metadata"] = {"sources": [{"updateTime": updated}]}
    return record


class FakeDirectory:
    """Directory service backed by dictionaries."""

    def __init__(self):
        self.groups = {}
        self.people = {}
        self.changed_count = 0
        self.next_token = "token-1"
        self.failing_groups = set()
        self.calls = []

    def add_group(self, resource_name, name, members, updated=None):
        group = {
            "resourceName": resource_name,
            "name": name,
            "memberCount": len(members),
            "memberResourceNames": [m["resourceName"] for m in members],
        }
        if updated is not None:
            group["metadata"] = {"updateTime": updated}
        self.groups[resource_name] = group
        for member in members:
            self.people[member["resourceName"]] = member

    def get_contact_group(self, resource_name, max_members=1000):
        self.calls.append(("get_contact_group", resource_name, max_members))
        if resource_name in self.failing_groups or resource_name not in self.groups:
            raise GroupNotFoundError(f"Contact group not found: {resource_name}")
        group = dict(self.groups[resource_name])
        group["memberResourceNames"] = group["memberResourceNames"][:max_members]
        return group

    def list_contact_groups(self):
        self.calls.append(("list_contact_groups",))
        return list(self.groups.values())

    def batch_get_people(self, resource_names, person_fields):
        self.calls.append(("batch_get_people", list(resource_names)))
        return [self.people[name] for name in resource_names if name in self.people]

    def list_connection_changes(self, sync_token=None):
        self.calls.append(("list_connection_changes", sync_token))
        return ConnectionChanges(
            changed_count=self.changed_count, next_sync_token=self.next_token
        )


class FakeSheet:
    """Spreadsheet sink that records every call."""

    def __init__(self, last_updated=EPOCH, last_row=0):
        self.last_updated = last_updated
        self.last_row = last_row
        self.writes = []
        self.clears = []
        self.titles = []

    def get_last_updated(self, spreadsheet_id):
        return self.last_updated

    def get_last_row(self, spreadsheet_id, sheet_name, num_columns=7):
        return self.last_row

    def write_values(self, spreadsheet_id, range_spec, rows):
        self.writes.append((range_spec, [list(row) for row in rows]))
        return len(rows) * 7

    def clear_values(self, spreadsheet_id, range_spec):
        self.clears.append(range_spec)

    def rename(self, spreadsheet_id, title):
        self.titles.append(title)

    @property
    def modified(self):
        return bool(self.writes or self.clears or self.titles)


class FakeStore:
    """Property store held in a dictionary."""

    def __init__(self, **properties):
        self.properties = dict(properties)

    def get_property(self, key, default=None):
        return self.properties.get(key, default)

    def set_property(self, key, value):
        self.properties[key] = value


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def sheet():
    return FakeSheet()


@pytest.fixture
def store():
    return FakeStore(CONTACTS_SPREADSHEET_ID="sheet-1")


@pytest.fixture
def sheet_time():
    """A fixed last-modified time for the destination."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_person():
    return person_record


@pytest.fixture
def empty_store():
    return FakeStore()
