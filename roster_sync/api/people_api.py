"""
Google People API wrapper for roster synchronization.

Provides a read-only interface to the Google People API for:
- Fetching contact groups with their member lists
- Batch fetching person records by resource name
- Listing connection changes since a sync token

Calls are not retried. HTTP errors are translated into PeopleAPIError
subclasses so callers can decide what a failure means for them.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

# Maximum number of items per page when listing
DEFAULT_PAGE_SIZE = 100

# people.getBatchGet accepts at most 200 resource names per request
DEFAULT_BATCH_SIZE = 200

# contactGroups.get returns at most 1000 members
MAX_GROUP_MEMBERS = 1000

# Fields requested when listing connection changes
CHANGE_PERSON_FIELDS = "names,metadata"

GROUP_FIELDS = "name,groupType,memberCount,metadata"

logger = logging.getLogger(__name__)


class PeopleAPIError(Exception):
    """Raised when a People API operation fails."""

    pass


class QuotaExceededError(PeopleAPIError):
    """Raised when the request was rejected for rate or quota limits."""

    pass


class GroupNotFoundError(PeopleAPIError):
    """Raised when a contact group does not exist."""

    pass


@dataclass(frozen=True)
class ConnectionChanges:
    """
    Result of an incremental connections listing.

    Attributes:
        changed_count: Connections added, changed or removed since the token.
                      For a full listing this is the total number of contacts.
        next_sync_token: Token marking the end of this window, if returned
        full_listing: True if the listing was not incremental
    """

    changed_count: int
    next_sync_token: Optional[str]
    full_listing: bool = False


def _is_quota_error(error: HttpError) -> bool:
    status = error.resp.status
    if status == 429:
        return True
    if status == 403:
        reason = str(error).lower()
        return "quota" in reason or "rate" in reason
    return False


class PeopleAPI:
    """
    Read-only Google People API wrapper.

    Attributes:
        credentials: Google OAuth2 credentials
        quota_user: Identity passed as quotaUser on every request

    Usage:
        api = PeopleAPI(credentials, quota_user="me@example.com")

        group = api.get_contact_group("contactGroups/abc", max_members=1000)
        people = api.batch_get_people(
            group["memberResourceNames"], "names,emailAddresses"
        )
        changes = api.list_connection_changes(sync_token=token)
    """

    def __init__(
        self,
        credentials: Credentials,
        quota_user: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Initialize the People API wrapper.

        Args:
            credentials: Valid Google OAuth2 credentials with contacts scope
            quota_user: Identity used to attribute quota (typically the
                       authenticated account's email address)
            page_size: Items per page when listing (default 100, max 1000)
            batch_size: Resource names per getBatchGet call (default 200, max 200)
        """
        self.credentials = credentials
        self.quota_user = quota_user
        self.page_size = min(page_size, 1000)  # API max is 1000
        self.batch_size = min(batch_size, DEFAULT_BATCH_SIZE)
        self._service = None

    @property
    def service(self) -> Any:
        """
        Get or create the Google API service object.

        Raises:
            PeopleAPIError: If service cannot be created
        """
        if self._service is None:
            try:
                self._service = build(
                    "people", "v1", credentials=self.credentials, cache_discovery=False
                )
                logger.debug("Created People API service")
            except Exception as e:
                logger.error(f"Failed to create People API service: {e}")
                raise PeopleAPIError(f"Failed to create API service: {e}") from e
        return self._service

    def _with_quota_user(self, params: dict[str, Any]) -> dict[str, Any]:
        if self.quota_user:
            params["quotaUser"] = self.quota_user
        return params

    def _execute(
        self,
        operation: Callable[[], Any],
        operation_name: str,
        not_found_message: Optional[str] = None,
    ) -> Any:
        """
        Execute a request once, translating HTTP errors.

        Args:
            operation: Callable performing the request
            operation_name: Name for logging purposes
            not_found_message: If set, a 404 raises GroupNotFoundError with it

        Raises:
            QuotaExceededError: On 429 or quota-related 403 responses
            GroupNotFoundError: On 404 responses when not_found_message is set
            PeopleAPIError: On any other HTTP error
        """
        try:
            return operation()
        except HttpError as e:
            status_code = e.resp.status
            if _is_quota_error(e):
                logger.warning(f"{operation_name} rejected by quota ({status_code})")
                raise QuotaExceededError(
                    f"Quota exceeded for {operation_name}: {e}"
                ) from e
            if status_code == 404 and not_found_message:
                raise GroupNotFoundError(not_found_message) from e
            logger.error(f"{operation_name} failed with status {status_code}: {e}")
            raise PeopleAPIError(f"{operation_name} failed: {e}") from e

    # ========== Contact Groups ==========

    def get_contact_group(
        self, resource_name: str, max_members: int = MAX_GROUP_MEMBERS
    ) -> dict[str, Any]:
        """
        Get a contact group together with its member resource names.

        Args:
            resource_name: Group's resource name (e.g., "contactGroups/abc123")
            max_members: Maximum number of members to return (max 1000)

        Returns:
            Contact group dict from API

        Raises:
            GroupNotFoundError: If the group does not exist
            PeopleAPIError: If the request fails
        """
        logger.debug(f"Getting contact group: {resource_name}")

        params = self._with_quota_user(
            {
                "resourceName": resource_name,
                "groupFields": GROUP_FIELDS,
                "maxMembers": max(1, min(max_members, MAX_GROUP_MEMBERS)),
            }
        )

        def execute_get() -> Any:
            return self.service.contactGroups().get(**params).execute()

        response = self._execute(
            execute_get,
            f"get_contact_group({resource_name})",
            not_found_message=f"Contact group not found: {resource_name}",
        )
        return dict(response)

    def list_contact_groups(self) -> list[dict[str, Any]]:
        """
        List all contact groups of the authenticated user.

        Returns:
            List of contact group dicts (user and system groups)

        Raises:
            PeopleAPIError: If listing fails
        """
        logger.debug("Listing contact groups")

        groups: list[dict[str, Any]] = []
        page_token: Optional[str] = None

        while True:
            params: dict[str, Any] = self._with_quota_user(
                {"pageSize": self.page_size, "groupFields": GROUP_FIELDS}
            )
            if page_token:
                params["pageToken"] = page_token

            def execute_list(p: dict[str, Any] = params) -> Any:
                return self.service.contactGroups().list(**p).execute()

            response = self._execute(execute_list, "list_contact_groups")
            groups.extend(response.get("contactGroups", []))

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(groups)} contact groups")
        return groups

    # ========== People ==========

    def batch_get_people(
        self, resource_names: Sequence[str], person_fields: str
    ) -> list[dict[str, Any]]:
        """
        Fetch person records for exactly the given resource names.

        Args:
            resource_names: Person resource names (e.g., "people/c123")
            person_fields: Comma-separated person field mask

        Returns:
            List of person dicts, in response order. Entries the API could
            not resolve are skipped.

        Raises:
            PeopleAPIError: If a request fails
        """
        people: list[dict[str, Any]] = []
        if not resource_names:
            return people

        names = list(resource_names)
        for start in range(0, len(names), self.batch_size):
            batch = names[start : start + self.batch_size]
            params = self._with_quota_user(
                {"resourceNames": batch, "personFields": person_fields}
            )

            def execute_batch(p: dict[str, Any] = params) -> Any:
                return self.service.people().getBatchGet(**p).execute()

            response = self._execute(execute_batch, "batch_get_people")
            for entry in response.get("responses", []):
                person = entry.get("person")
                if person:
                    people.append(person)
                else:
                    logger.debug(
                        f"No person returned for {entry.get('requestedResourceName')}"
                    )

        logger.debug(f"Fetched {len(people)} of {len(names)} people")
        return people

    def list_connection_changes(
        self, sync_token: Optional[str] = None
    ) -> ConnectionChanges:
        """
        List connections changed since sync_token and get a new token.

        Without a token (or when the token has expired) a full listing is
        made, so every existing contact counts as changed.

        Args:
            sync_token: Token from a previous call

        Returns:
            ConnectionChanges with the change count and next sync token

        Raises:
            PeopleAPIError: If listing fails
        """
        if sync_token:
            try:
                return self._list_connections(sync_token)
            except PeopleAPIError as e:
                cause = e.__cause__
                if isinstance(cause, HttpError) and cause.resp.status in (400, 410):
                    logger.warning(
                        "Connections sync token expired, falling back to full listing"
                    )
                else:
                    raise
        return self._list_connections(None)

    def _list_connections(self, sync_token: Optional[str]) -> ConnectionChanges:
        logger.debug(f"Listing connections (sync_token={bool(sync_token)})")

        page_token: Optional[str] = None
        next_sync_token: Optional[str] = None
        total_people: Optional[int] = None
        returned = 0

        while True:
            params: dict[str, Any] = self._with_quota_user(
                {
                    "resourceName": "people/me",
                    "personFields": CHANGE_PERSON_FIELDS,
                    "pageSize": self.page_size,
                    "requestSyncToken": True,
                }
            )
            if sync_token:
                params["syncToken"] = sync_token
            if page_token:
                params["pageToken"] = page_token

            def execute_list(p: dict[str, Any] = params) -> Any:
                return self.service.people().connections().list(**p).execute()

            response = self._execute(execute_list, "list_connection_changes")

            returned += len(response.get("connections", []))
            if "totalPeople" in response:
                total_people = response["totalPeople"]

            page_token = response.get("nextPageToken")
            next_sync_token = response.get("nextSyncToken") or next_sync_token

            if not page_token:
                break

        changed = total_people if total_people is not None else returned
        logger.info(f"Connections changed since last token: {changed}")
        return ConnectionChanges(
            changed_count=changed,
            next_sync_token=next_sync_token,
            full_listing=sync_token is None,
        )
