"""
Directory reader: fetches the roster groups and their members.

One contactGroups.get per group resolves membership, then getBatchGet
resolves exactly those members. A failure while reading one group leaves
that group absent; the other groups are still read.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from roster_sync.api.people_api import MAX_GROUP_MEMBERS, PeopleAPIError
from roster_sync.sync.group import (
    RESOURCE_PROPERTY_BY_LABEL,
    ROSTER_LABELS,
    ContactGroup,
    is_group_resource_name,
)
from roster_sync.sync.interfaces import ConfigurationStore, DirectoryService
from roster_sync.sync.person import PERSON_FIELDS, Person

logger = logging.getLogger(__name__)


@dataclass
class GroupSnapshot:
    """
    What was read for one roster label.

    Attributes:
        label: Roster label
        group: Group metadata, or None if the group could not be read
        people: Members of the group (empty when the group is absent)
    """

    label: str
    group: Optional[ContactGroup] = None
    people: list[Person] = field(default_factory=list)

    @property
    def present(self) -> bool:
        return self.group is not None


def configured_identifiers(store: ConfigurationStore) -> dict[str, str]:
    """
    Get the group identifier for each roster label.

    A RESOURCE_NAME_<LABEL> property overrides the default, which is the
    label itself (looked up by group name).
    """
    return {
        label: store.get_property(RESOURCE_PROPERTY_BY_LABEL[label]) or label
        for label in ROSTER_LABELS
    }


class DirectoryReader:
    """
    Reads roster groups from the directory service.

    Usage:
        reader = DirectoryReader(people_api, max_members=1000)
        resource_names = reader.resolve_groups(configured_identifiers(store))
        snapshots = reader.read_all(resource_names)
    """

    def __init__(
        self, directory: DirectoryService, max_members: int = MAX_GROUP_MEMBERS
    ):
        self.directory = directory
        self.max_members = max_members

    def resolve_groups(
        self, identifiers: Mapping[str, str]
    ) -> dict[str, Optional[str]]:
        """
        Turn configured identifiers into group resource names.

        Identifiers already in contactGroups/... form are used as-is. Others
        are matched case-insensitively against group names from a single
        contactGroups.list call.

        Args:
            identifiers: Identifier per roster label

        Returns:
            Resource name per label, None where no group matched
        """
        resolved: dict[str, Optional[str]] = {}
        by_name: Optional[dict[str, str]] = None

        for label, identifier in identifiers.items():
            if is_group_resource_name(identifier):
                resolved[label] = identifier
                continue

            if by_name is None:
                by_name = self._groups_by_name()

            resource_name = by_name.get(identifier.strip().lower())
            if resource_name is None:
                logger.warning(f"No contact group named '{identifier}' for {label}")
            resolved[label] = resource_name

        return resolved

    def _groups_by_name(self) -> dict[str, str]:
        try:
            groups = self.directory.list_contact_groups()
        except PeopleAPIError as e:
            logger.warning(f"Could not list contact groups: {e}")
            return {}

        names: dict[str, str] = {}
        for group in groups:
            name = group.get("name")
            resource_name = group.get("resourceName")
            if name and resource_name:
                names.setdefault(name.lower(), resource_name)
        return names

    def fetch_group(self, label: str, resource_name: str) -> ContactGroup:
        """
        Fetch one group's metadata and member list.

        Raises:
            PeopleAPIError: If the group cannot be read
        """
        response = self.directory.get_contact_group(
            resource_name, max_members=self.max_members
        )
        group = ContactGroup.from_api_response(response, label)
        if group.member_count > len(group.member_resource_names):
            logger.warning(
                f"{label} has {group.member_count} members, "
                f"only {len(group.member_resource_names)} fetched"
            )
        return group

    def fetch_people(self, group: ContactGroup) -> list[Person]:
        """
        Fetch the person records of a group's members.

        Raises:
            PeopleAPIError: If the batch request fails
        """
        if not group.member_resource_names:
            return []
        records = self.directory.batch_get_people(
            group.member_resource_names, PERSON_FIELDS
        )
        return [Person.from_api_response(record) for record in records]

    def read_group(self, label: str, resource_name: Optional[str]) -> GroupSnapshot:
        """
        Read one roster group, never raising for directory errors.

        Returns:
            Snapshot with the group and its people, or an absent snapshot
        """
        if not resource_name:
            return GroupSnapshot(label=label)

        try:
            group = self.fetch_group(label, resource_name)
            people = self.fetch_people(group)
        except PeopleAPIError as e:
            logger.warning(f"Skipping {label} group ({resource_name}): {e}")
            return GroupSnapshot(label=label)

        logger.debug(f"Read {len(people)} people for {label} ({resource_name})")
        return GroupSnapshot(label=label, group=group, people=people)

    def read_all(
        self, resource_names: Mapping[str, Optional[str]]
    ) -> dict[str, GroupSnapshot]:
        """
        Read every roster group.

        Args:
            resource_names: Resource name per label (None for unresolved)

        Returns:
            Snapshot per label, in roster order
        """
        return {
            label: self.read_group(label, resource_names.get(label))
            for label in ROSTER_LABELS
        }
