"""
Row formatting for the roster sheet.

Each person becomes a fixed seven-column row. Every column has its own
extractor and its own fallback value, listed in COLUMNS, so the defaulting
rules can be read (and tested) one column at a time.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Optional

from roster_sync.sync.person import Person

# Placeholder used when a person has no name record at all
UNKNOWN_NAME = "unk"

ADDRESS_SEPARATOR = ", "

Row = tuple[str, str, str, str, str, str, str]


@dataclass(frozen=True)
class Column:
    """One sheet column: its header, how to read it, and what to use if absent."""

    header: str
    extract: Callable[[Person, str], Optional[str]]
    default: str = ""


def _join_address(person: Person) -> Optional[str]:
    if person.address is None:
        return None
    address = person.address
    return ADDRESS_SEPARATOR.join(
        [address.street, address.city, address.region, address.postal_code]
    )


def _nth_email(index: int) -> Callable[[Person, str], Optional[str]]:
    def extract(person: Person, _label: str) -> Optional[str]:
        return person.emails[index] if len(person.emails) > index else None

    return extract


COLUMNS: tuple[Column, ...] = (
    Column("Name", lambda person, _label: person.name, UNKNOWN_NAME),
    Column("Position", lambda person, _label: person.title),
    Column("Status", lambda _person, label: label),
    Column("Phone", lambda person, _label: person.phone),
    Column("Home Address", lambda person, _label: _join_address(person)),
    Column("Primary Email", _nth_email(0)),
    Column("Other Email", _nth_email(1)),
)

HEADER = tuple(column.header for column in COLUMNS)

NUM_COLUMNS = len(COLUMNS)


def format_person(person: Person, label: str) -> Row:
    """
    Convert a person into a roster row.

    Args:
        person: Directory record
        label: Group label, written verbatim to the Status column

    Returns:
        Seven-field row in column order
    """
    values = []
    for column in COLUMNS:
        value = column.extract(person, label)
        values.append(column.default if value is None else value)
    return tuple(values)  # type: ignore[return-value]


def format_group(people: Iterable[Person], label: str) -> list[Row]:
    """
    Format every person of a group and sort the rows.

    Rows sort lexicographically, field by field in column order, which fixes
    the order of people within the group's block on the sheet.

    Args:
        people: Directory records of one group
        label: Group label

    Returns:
        Sorted list of rows (empty if there are no people)
    """
    return sorted(format_person(person, label) for person in people)
