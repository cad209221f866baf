"""
Tests for the Person and ContactGroup models and timestamp parsing.
"""

from datetime import datetime, timezone

from roster_sync.sync.group import (
    ROSTER_LABELS,
    ContactGroup,
    is_group_resource_name,
)
from roster_sync.sync.person import Person, PostalAddress
from roster_sync.utils.timestamps import EPOCH, parse_timestamp


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_none_is_epoch(self):
        """Missing timestamps compare as very old."""
        assert parse_timestamp(None) == EPOCH

    def test_empty_is_epoch(self):
        assert parse_timestamp("") == EPOCH

    def test_invalid_is_epoch(self):
        assert parse_timestamp("not a date") == EPOCH

    def test_zulu(self):
        """A trailing Z is UTC."""
        assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(
            2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc
        )

    def test_nanoseconds_truncated(self):
        """Fractions longer than microseconds are truncated."""
        parsed = parse_timestamp("2024-01-02T03:04:05.123456789Z")

        assert parsed.microsecond == 123456

    def test_naive_assumed_utc(self):
        assert parse_timestamp("2024-01-02T03:04:05").tzinfo == timezone.utc

    def test_offset_preserved(self):
        """Offsets are honoured when comparing."""
        assert parse_timestamp("2024-01-02T05:00:00+02:00") == parse_timestamp(
            "2024-01-02T03:00:00Z"
        )


class TestPersonFromApiResponse:
    """Tests for Person.from_api_response."""

    def test_minimal_record(self):
        """A record with only a resource name has no fields set."""
        person = Person.from_api_response({"resourceName": "people/c1"})

        assert person.resource_name == "people/c1"
        assert person.name is None
        assert person.title is None
        assert person.phone is None
        assert person.address is None
        assert person.emails == []
        assert person.last_modified == EPOCH

    def test_first_values_used(self):
        """Only the first name, organization, phone and address are kept."""
        person = Person.from_api_response(
            {
                "resourceName": "people/c1",
                "names": [
                    {"displayNameLastFirst": "Doe, John"},
                    {"displayNameLastFirst": "Other"},
                ],
                "organizations": [{"title": "Trumpet"}, {"title": "Other"}],
                "phoneNumbers": [{"value": "555-0100"}, {"value": "555-0199"}],
                "addresses": [
                    {
                        "streetAddress": "1 Main St",
                        "city": "Boston",
                        "region": "MA",
                        "postalCode": "02101",
                    }
                ],
                "emailAddresses": [{"value": "a@x.com"}, {"value": "b@x.com"}],
                "metadata": {"sources": [{"updateTime": "2024-03-01T00:00:00Z"}]},
            }
        )

        assert person.name == "Doe, John"
        assert person.title == "Trumpet"
        assert person.phone == "555-0100"
        assert person.address == PostalAddress("1 Main St", "Boston", "MA", "02101")
        assert person.emails == ["a@x.com", "b@x.com"]
        assert person.last_modified == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_records_without_values_are_empty_strings(self):
        """A record that exists but lacks its value becomes ''."""
        person = Person.from_api_response(
            {
                "resourceName": "people/c1",
                "names": [{"givenName": "John"}],
                "organizations": [{"name": "Band"}],
                "phoneNumbers": [{"type": "mobile"}],
                "addresses": [{"city": "Boston"}],
            }
        )

        assert person.name == ""
        assert person.title == ""
        assert person.phone == ""
        assert person.address == PostalAddress(city="Boston")

    def test_metadata_without_sources(self):
        person = Person.from_api_response(
            {"resourceName": "people/c1", "metadata": {"sources": []}}
        )

        assert person.last_modified == EPOCH


class TestContactGroup:
    """Tests for ContactGroup."""

    def test_from_api_response(self):
        group = ContactGroup.from_api_response(
            {
                "resourceName": "contactGroups/abc",
                "name": "Active Members",
                "memberCount": 2,
                "memberResourceNames": ["people/c1", "people/c2"],
                "metadata": {"updateTime": "2024-01-01T00:00:00Z"},
            },
            "Active",
        )

        assert group.resource_name == "contactGroups/abc"
        assert group.label == "Active"
        assert group.name == "Active Members"
        assert group.member_count == 2
        assert group.member_resource_names == ["people/c1", "people/c2"]
        assert group.updated == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_missing_members_and_metadata(self):
        """A group with no members has an empty list and an EPOCH update time."""
        group = ContactGroup.from_api_response(
            {"resourceName": "contactGroups/abc"}, "Guest"
        )

        assert group.member_resource_names == []
        assert group.member_count == 0
        assert group.updated == EPOCH

    def test_roster_order(self):
        """Labels are written in a fixed order."""
        assert ROSTER_LABELS == ("Active", "Guest", "Student", "Inactive")

    def test_is_group_resource_name(self):
        assert is_group_resource_name("contactGroups/abc")
        assert not is_group_resource_name("Active")
