"""
Change detection: decides whether the roster sheet needs rewriting.

Checks run in order and stop at the first positive:
1. Connections added, changed or removed since the stored sync token
2. A member record modified after the sheet

The connections listing always runs, even in forced mode, because it also
advances the stored sync token.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime

from roster_sync.storage.properties import CONNECTIONS_SYNC_TOKEN
from roster_sync.sync.interfaces import ConfigurationStore, DirectoryService
from roster_sync.sync.reader import GroupSnapshot
from roster_sync.sync.state import SyncState

logger = logging.getLogger(__name__)

REASON_FORCED = "forced"
REASON_CONNECTIONS = "connections changed"
REASON_PERSON = "contact modified"
REASON_NONE = "no changes"


@dataclass(frozen=True)
class ChangeReport:
    """
    Outcome of change detection.

    Attributes:
        update_needed: True if the sheet should be rewritten
        reason: Which check decided the outcome
        changed_connections: Change count reported by the connections listing
    """

    update_needed: bool
    reason: str
    changed_connections: int = 0


def people_modified_since(
    snapshots: Iterable[GroupSnapshot], since: datetime
) -> bool:
    """Return True if any member of any group was modified strictly after since."""
    return any(
        person.last_modified > since
        for snapshot in snapshots
        for person in snapshot.people
    )


class ChangeDetector:
    """
    Gate in front of the sheet writer.

    Usage:
        detector = ChangeDetector(people_api, property_store)
        if detector.update_needed(state, snapshots, force=False):
            ...
    """

    def __init__(self, directory: DirectoryService, store: ConfigurationStore):
        self.directory = directory
        self.store = store

    def advance_sync_token(self, state: SyncState) -> int:
        """
        List connection changes since the stored token and persist the new one.

        Returns:
            Number of connections changed since the stored token

        Raises:
            PeopleAPIError: If the listing fails
        """
        changes = self.directory.list_connection_changes(state.sync_token)
        if changes.next_sync_token:
            self.store.set_property(CONNECTIONS_SYNC_TOKEN, changes.next_sync_token)
            state.sync_token = changes.next_sync_token
            logger.debug("Stored new connections sync token")
        return changes.changed_count

    def detect(
        self,
        state: SyncState,
        snapshots: Mapping[str, GroupSnapshot],
        force: bool = False,
    ) -> ChangeReport:
        """
        Decide whether the roster needs rewriting.

        Args:
            state: Run state (the token is updated in place)
            snapshots: Groups read for this run
            force: Skip the checks and always report an update

        Returns:
            ChangeReport describing the decision
        """
        changed = self.advance_sync_token(state)

        if force:
            report = ChangeReport(True, REASON_FORCED, changed)
        elif changed > 0:
            report = ChangeReport(True, REASON_CONNECTIONS, changed)
        elif people_modified_since(snapshots.values(), state.sheet_last_updated):
            report = ChangeReport(True, REASON_PERSON, changed)
        else:
            report = ChangeReport(False, REASON_NONE, changed)

        logger.info(
            f"Update needed: {report.update_needed} ({report.reason}, "
            f"{changed} changed connections)"
        )
        return report

    def update_needed(
        self,
        state: SyncState,
        snapshots: Mapping[str, GroupSnapshot],
        force: bool = False,
    ) -> bool:
        """Return True if the roster sheet should be rewritten."""
        return self.detect(state, snapshots, force=force).update_needed
