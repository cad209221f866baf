"""
Person data model for roster rows.

Only the first value of each multi-valued field is kept, except email
addresses, where the first two are used.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from roster_sync.utils.timestamps import EPOCH, parse_timestamp

# Fields requested from people.getBatchGet
PERSON_FIELDS = ",".join(
    [
        "addresses",
        "emailAddresses",
        "metadata",
        "names",
        "organizations",
        "phoneNumbers",
    ]
)


@dataclass(frozen=True)
class PostalAddress:
    """First postal address of a person; absent parts are empty strings."""

    street: str = ""
    city: str = ""
    region: str = ""
    postal_code: str = ""


@dataclass
class Person:
    """
    One directory record.

    A field is None when the person has no record of that kind at all, and
    an empty string when a record exists without the value.

    Attributes:
        resource_name: Google's unique ID (e.g., "people/c12345")
        name: displayNameLastFirst of the first name record
        title: Title of the first organization
        phone: Value of the first phone number
        address: First postal address
        emails: Email address values, in API order
        last_modified: updateTime of the first metadata source (EPOCH if absent)
    """

    resource_name: str = ""
    name: Optional[str] = None
    title: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[PostalAddress] = None
    emails: list[str] = field(default_factory=list)
    last_modified: datetime = EPOCH

    @classmethod
    def from_api_response(cls, person: dict[str, Any]) -> Person:
        """
        Create a Person from a People API person resource.

        Example API response structure::

            {
                'resourceName': 'people/c12345',
                'names': [{'displayNameLastFirst': 'Doe, John'}],
                'organizations': [{'title': 'Trumpet'}],
                'phoneNumbers': [{'value': '555-0100'}],
                'addresses': [{'streetAddress': '1 Main St', 'city': 'Boston',
                               'region': 'MA', 'postalCode': '02101'}],
                'emailAddresses': [{'value': 'john@example.com'}],
                'metadata': {'sources': [{'updateTime': '2024-01-01T00:00:00Z'}]}
            }
        """
        names = person.get("names") or []
        organizations = person.get("organizations") or []
        phones = person.get("phoneNumbers") or []
        addresses = person.get("addresses") or []
        sources = (person.get("metadata") or {}).get("sources") or []

        address = None
        if addresses:
            first = addresses[0]
            address = PostalAddress(
                street=first.get("streetAddress", ""),
                city=first.get("city", ""),
                region=first.get("region", ""),
                postal_code=first.get("postalCode", ""),
            )

        return cls(
            resource_name=person.get("resourceName", ""),
            name=names[0].get("displayNameLastFirst", "") if names else None,
            title=organizations[0].get("title", "") if organizations else None,
            phone=phones[0].get("value", "") if phones else None,
            address=address,
            emails=[e.get("value", "") for e in person.get("emailAddresses") or []],
            last_modified=parse_timestamp(
                sources[0].get("updateTime") if sources else None
            ),
        )
