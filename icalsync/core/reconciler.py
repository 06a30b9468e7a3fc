"""
icalsync — Reconciliation Engine.

Walks the feed in order, matches each event to the remote snapshot by its
derived id, and issues at most one mutation per event:

    no remote match            -> insert   (created)
    match, equal               -> nothing  (unchanged)
    match, differs, cancelled  -> update   (restored)
    match, differs             -> update   (updated)

Every remote event left unmatched afterwards is deleted unless it is already
cancelled. Deletes are soft in the remote store, so an id removed from the
feed ends up cancelled and can be restored by a later run.

Calls are strictly sequential. Nothing is retried and nothing is rolled back:
an error stops the run where it happened.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable

from icalsync.core.comparator import events_equal
from icalsync.core.errors import DeadlineExceededError
from icalsync.core.identity import canonicalize
from icalsync.core.participants import (
    ParticipantPolicy,
    filter_organizers,
    organizer_allowed,
)
from icalsync.data.models import CanonicalEvent, RemoteEvent, SourceEvent, SyncOutcome

if TYPE_CHECKING:
    from icalsync.core.snapshot import RemoteSnapshot
    from icalsync.ports.calendar_port import RemoteCalendarClient

logger = logging.getLogger(__name__)


class SyncAction(Enum):
    CREATE = "create"
    NOOP = "noop"
    RESTORE = "restore"
    UPDATE = "update"


class Deadline:
    """Overall time budget for a run, checked before every remote call."""

    def __init__(
        self, seconds: float | None, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._clock = clock
        self._expires_at = clock() + seconds if seconds else None

    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def check(self, outcome: SyncOutcome) -> None:
        if self.expired():
            raise DeadlineExceededError("Sync run deadline exceeded", outcome)


def classify(
    canonical: CanonicalEvent,
    remote: RemoteEvent | None,
    compare_attendees: bool = False,
) -> SyncAction:
    if remote is None:
        return SyncAction.CREATE
    if events_equal(canonical, remote, compare_attendees):
        return SyncAction.NOOP
    if remote.cancelled:
        return SyncAction.RESTORE
    return SyncAction.UPDATE


def reconcile(
    client: RemoteCalendarClient,
    calendar_id: str,
    source_events: Iterable[SourceEvent],
    snapshot: RemoteSnapshot,
    organizer_allow_list: Iterable[str] | None = None,
    *,
    policy: ParticipantPolicy | None = None,
    compare_attendees: bool = False,
    deadline: Deadline | None = None,
    outcome: SyncOutcome | None = None,
) -> SyncOutcome:
    """Converge the remote calendar to the source events.

    ``snapshot`` is consumed: matched events are removed from it. Pass an
    ``outcome`` to observe progress if the run aborts midway.

    Raises:
        UnsupportedRuleError: an event's recurrence rule cannot be forwarded.
        CalendarError: a remote call failed.
        DeadlineExceededError: ``deadline`` passed before the run finished.
    """
    outcome = outcome if outcome is not None else SyncOutcome()
    allow_list = list(organizer_allow_list or ())

    for source in source_events:
        if not organizer_allowed(filter_organizers(source.organizers), allow_list):
            logger.debug("Skipping %s: organizer not in allow-list", source.uid)
            continue

        canonical = canonicalize(source, policy)
        if canonical.cancelled:
            outcome.source_cancelled += 1

        remote = snapshot.pop(canonical.id)
        action = classify(canonical, remote, compare_attendees)

        if action is SyncAction.NOOP:
            outcome.unchanged += 1
            logger.debug("Unchanged: %s '%s'", canonical.id, canonical.summary)
            continue

        if deadline is not None:
            deadline.check(outcome)

        if action is SyncAction.CREATE:
            client.insert(calendar_id, canonical)
            outcome.created += 1
            logger.info("Created: %s '%s'", canonical.id, canonical.summary)
        else:
            client.update(calendar_id, canonical.id, canonical)
            if action is SyncAction.RESTORE:
                outcome.restored += 1
                logger.info("Restored: %s '%s'", canonical.id, canonical.summary)
            else:
                outcome.updated += 1
                logger.info("Updated: %s '%s'", canonical.id, canonical.summary)

    for remote in snapshot.remaining():
        if remote.cancelled:
            continue
        if deadline is not None:
            deadline.check(outcome)
        client.delete(calendar_id, remote.id)
        snapshot.pop(remote.id)
        outcome.deleted += 1
        logger.info("Deleted: %s '%s'", remote.id, remote.summary)

    return outcome
