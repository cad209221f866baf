"""
roster_sync.api - Google API clients

People API for the directory, Sheets and Drive APIs for the destination.
"""

from roster_sync.api.people_api import (
    ConnectionChanges,
    GroupNotFoundError,
    PeopleAPI,
    PeopleAPIError,
    QuotaExceededError,
)
from roster_sync.api.sheets_api import SheetsAPI, SheetsAPIError

__all__ = [
    "ConnectionChanges",
    "GroupNotFoundError",
    "PeopleAPI",
    "PeopleAPIError",
    "QuotaExceededError",
    "SheetsAPI",
    "SheetsAPIError",
]
