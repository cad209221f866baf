"""
Unit tests for the People API module.

Tests the PeopleAPI class with mocked Google API responses.
"""

from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from roster_sync.api.people_api import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_PAGE_SIZE,
    MAX_GROUP_MEMBERS,
    ConnectionChanges,
    GroupNotFoundError,
    PeopleAPI,
    PeopleAPIError,
    QuotaExceededError,
)


def http_error(status, message="error"):
    """Create an HttpError with the given status and JSON error message."""
    resp = MagicMock()
    resp.status = status
    resp.reason = "Error"
    content = ('{"error": {"message": "%s"}}' % message).encode("utf-8")
    return HttpError(resp, content)


@pytest.fixture
def api():
    """Create a PeopleAPI instance with a mocked service."""
    instance = PeopleAPI(MagicMock(), quota_user="me@example.com")
    instance._service = MagicMock()
    return instance


class TestPeopleAPIInitialization:
    """Tests for PeopleAPI initialization."""

    def test_defaults(self):
        mock_creds = MagicMock()
        api = PeopleAPI(mock_creds)

        assert api.credentials == mock_creds
        assert api.quota_user is None
        assert api.page_size == DEFAULT_PAGE_SIZE
        assert api.batch_size == DEFAULT_BATCH_SIZE
        assert api._service is None

    def test_batch_size_capped_at_api_limit(self):
        """getBatchGet never receives more than 200 names."""
        api = PeopleAPI(MagicMock(), batch_size=500)

        assert api.batch_size == 200

    def test_page_size_capped_at_1000(self):
        api = PeopleAPI(MagicMock(), page_size=2000)

        assert api.page_size == 1000


class TestPeopleAPIService:
    """Tests for the service property."""

    @patch("roster_sync.api.people_api.build")
    def test_service_created_once(self, mock_build):
        mock_creds = MagicMock()
        api = PeopleAPI(mock_creds)

        first = api.service
        second = api.service

        mock_build.assert_called_once_with(
            "people", "v1", credentials=mock_creds, cache_discovery=False
        )
        assert first is second

    @patch("roster_sync.api.people_api.build")
    def test_service_creation_failure(self, mock_build):
        mock_build.side_effect = Exception("Connection failed")

        with pytest.raises(PeopleAPIError, match="Failed to create API service"):
            _ = PeopleAPI(MagicMock()).service


class TestExecute:
    """Tests for HTTP error translation."""

    def test_success_passes_through(self, api):
        assert api._execute(lambda: {"ok": True}, "op") == {"ok": True}

    def test_429_is_quota_error(self, api):
        def operation():
            raise http_error(429, "Too many requests")

        with pytest.raises(QuotaExceededError):
            api._execute(operation, "op")

    def test_quota_403_is_quota_error(self, api):
        def operation():
            raise http_error(403, "Quota exceeded for quota metric")

        with pytest.raises(QuotaExceededError):
            api._execute(operation, "op")

    def test_other_403_is_plain_error(self, api):
        def operation():
            raise http_error(403, "The caller does not have permission")

        with pytest.raises(PeopleAPIError) as exc_info:
            api._execute(operation, "op")
        assert not isinstance(exc_info.value, QuotaExceededError)

    def test_no_retry(self, api):
        """Failures are raised after a single attempt."""
        operation = MagicMock(side_effect=http_error(500, "Backend error"))

        with pytest.raises(PeopleAPIError):
            api._execute(operation, "op")
        assert operation.call_count == 1

    def test_cause_preserved(self, api):
        error = http_error(500)

        def operation():
            raise error

        with pytest.raises(PeopleAPIError) as exc_info:
            api._execute(operation, "op")
        assert exc_info.value.__cause__ is error


class TestContactGroups:
    """Tests for contact group calls."""

    def test_get_contact_group(self, api):
        groups = api._service.contactGroups.return_value
        groups.get.return_value.execute.return_value = {
            "resourceName": "contactGroups/a",
            "memberResourceNames": ["people/c1"],
        }

        result = api.get_contact_group("contactGroups/a", max_members=50)

        assert result["memberResourceNames"] == ["people/c1"]
        kwargs = groups.get.call_args.kwargs
        assert kwargs["resourceName"] == "contactGroups/a"
        assert kwargs["maxMembers"] == 50
        assert kwargs["quotaUser"] == "me@example.com"

    def test_max_members_clamped(self, api):
        groups = api._service.contactGroups.return_value
        groups.get.return_value.execute.return_value = {}

        api.get_contact_group("contactGroups/a", max_members=5000)

        assert groups.get.call_args.kwargs["maxMembers"] == MAX_GROUP_MEMBERS

    def test_get_missing_group(self, api):
        groups = api._service.contactGroups.return_value
        groups.get.return_value.execute.side_effect = http_error(404, "Not found")

        with pytest.raises(GroupNotFoundError, match="contactGroups/x"):
            api.get_contact_group("contactGroups/x")

    def test_list_contact_groups_pages(self, api):
        groups = api._service.contactGroups.return_value
        groups.list.return_value.execute.side_effect = [
            {"contactGroups": [{"name": "Active"}], "nextPageToken": "p2"},
            {"contactGroups": [{"name": "Guest"}]},
        ]

        result = api.list_contact_groups()

        assert [g["name"] for g in result] == ["Active", "Guest"]
        assert groups.list.call_args_list[1].kwargs["pageToken"] == "p2"


class TestBatchGetPeople:
    """Tests for batch_get_people."""

    def test_empty_input_makes_no_call(self, api):
        assert api.batch_get_people([], "names") == []
        api._service.people.assert_not_called()

    def test_chunks_of_200(self, api):
        people = api._service.people.return_value
        people.getBatchGet.return_value.execute.return_value = {"responses": []}
        names = [f"people/c{i}" for i in range(450)]

        api.batch_get_people(names, "names")

        sizes = [
            len(c.kwargs["resourceNames"]) for c in people.getBatchGet.call_args_list
        ]
        assert sizes == [200, 200, 50]

    def test_unresolved_entries_skipped(self, api):
        people = api._service.people.return_value
        people.getBatchGet.return_value.execute.return_value = {
            "responses": [
                {"person": {"resourceName": "people/c1"}},
                {"requestedResourceName": "people/c2", "status": {"code": 5}},
            ]
        }

        result = api.batch_get_people(["people/c1", "people/c2"], "names")

        assert result == [{"resourceName": "people/c1"}]


class TestListConnectionChanges:
    """Tests for list_connection_changes."""

    def test_incremental_listing(self, api):
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.return_value = {
            "connections": [{"resourceName": "people/c1"}],
            "nextSyncToken": "next",
            "totalPeople": 1,
        }

        result = api.list_connection_changes("old")

        assert result == ConnectionChanges(
            changed_count=1, next_sync_token="next", full_listing=False
        )
        kwargs = connections.list.call_args.kwargs
        assert kwargs["syncToken"] == "old"
        assert kwargs["requestSyncToken"] is True
        assert kwargs["resourceName"] == "people/me"

    def test_no_changes(self, api):
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.return_value = {"nextSyncToken": "next"}

        result = api.list_connection_changes("old")

        assert result.changed_count == 0
        assert result.next_sync_token == "next"

    def test_counts_returned_connections_without_total(self, api):
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = [
            {"connections": [{}, {}], "nextPageToken": "p2"},
            {"connections": [{}], "nextSyncToken": "next"},
        ]

        result = api.list_connection_changes(None)

        assert result.changed_count == 3
        assert result.full_listing is True
        assert "syncToken" not in connections.list.call_args_list[0].kwargs

    def test_expired_token_falls_back_to_full_listing(self, api):
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = [
            http_error(410, "Sync token is expired"),
            {"connections": [{}], "totalPeople": 1, "nextSyncToken": "fresh"},
        ]

        result = api.list_connection_changes("stale")

        assert result.full_listing is True
        assert result.changed_count == 1
        assert result.next_sync_token == "fresh"

    def test_other_errors_propagate(self, api):
        connections = api._service.people.return_value.connections.return_value
        connections.list.return_value.execute.side_effect = http_error(500)

        with pytest.raises(PeopleAPIError):
            api.list_connection_changes("old")
