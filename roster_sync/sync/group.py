"""
ContactGroup data model and the fixed roster labels.

The roster is made of four contact groups. Their labels double as the
Status column value and as the built-in default group identifiers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from roster_sync.storage.properties import (
    RESOURCE_NAME_ACTIVE,
    RESOURCE_NAME_GUEST,
    RESOURCE_NAME_INACTIVE,
    RESOURCE_NAME_STUDENT,
)
from roster_sync.utils.timestamps import EPOCH, parse_timestamp

LABEL_ACTIVE = "Active"
LABEL_GUEST = "Guest"
LABEL_STUDENT = "Student"
LABEL_INACTIVE = "Inactive"

# Sheet write order; output stays stable across runs
ROSTER_LABELS = (LABEL_ACTIVE, LABEL_GUEST, LABEL_STUDENT, LABEL_INACTIVE)

# Property holding the resource name override for each label
RESOURCE_PROPERTY_BY_LABEL = {
    LABEL_ACTIVE: RESOURCE_NAME_ACTIVE,
    LABEL_GUEST: RESOURCE_NAME_GUEST,
    LABEL_STUDENT: RESOURCE_NAME_STUDENT,
    LABEL_INACTIVE: RESOURCE_NAME_INACTIVE,
}

GROUP_RESOURCE_PREFIX = "contactGroups/"


def is_group_resource_name(identifier: str) -> bool:
    """Return True if identifier is a contactGroups/... resource name."""
    return identifier.startswith(GROUP_RESOURCE_PREFIX)


@dataclass
class ContactGroup:
    """
    One roster group as returned by contactGroups.get.

    Attributes:
        resource_name: Google's unique ID (e.g., "contactGroups/123abc")
        label: Roster label this group is read for (e.g., "Active")
        name: Display name of the group in Google Contacts
        member_count: Number of members reported by the API
        member_resource_names: Member resource names, bounded by maxMembers
        updated: Last modification time of the group (EPOCH if absent)
    """

    resource_name: str
    label: str
    name: str = ""
    member_count: int = 0
    member_resource_names: list[str] = field(default_factory=list)
    updated: datetime = EPOCH

    @classmethod
    def from_api_response(cls, group_data: dict[str, Any], label: str) -> ContactGroup:
        """
        Create a ContactGroup from a People API contactGroup resource.

        Example API response structure::

            {
                'resourceName': 'contactGroups/123abc',
                'name': 'Active',
                'memberCount': 2,
                'memberResourceNames': ['people/c1', 'people/c2'],
                'metadata': {'updateTime': '2024-01-01T00:00:00Z'}
            }
        """
        metadata = group_data.get("metadata", {})
        return cls(
            resource_name=group_data.get("resourceName", ""),
            label=label,
            name=group_data.get("name", ""),
            member_count=group_data.get("memberCount", 0),
            member_resource_names=list(group_data.get("memberResourceNames", [])),
            updated=parse_timestamp(metadata.get("updateTime")),
        )
