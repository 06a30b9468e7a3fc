"""
icalsync — Sync Service.

Run-level entry points used by the CLI:
    run()   — validate, parse the feed, load the remote snapshot, reconcile.
    purge() — soft-delete every active remote event, bypassing the feed.

The remote client and feed parser are injected; one service instance is
built per run and holds no connection state of its own.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from icalsync.core.errors import ConfigurationError
from icalsync.core.participants import ParticipantPolicy
from icalsync.core.reconciler import Deadline, reconcile
from icalsync.core.snapshot import RemoteSnapshot, load_all
from icalsync.data.models import SyncOutcome

if TYPE_CHECKING:
    from icalsync.ports.calendar_port import RemoteCalendarClient
    from icalsync.ports.feed_port import FeedParser

logger = logging.getLogger(__name__)


class SyncService:
    """One-way sync of a calendar feed into a remote calendar."""

    def __init__(
        self,
        client: RemoteCalendarClient,
        parser: FeedParser,
        policy: ParticipantPolicy | None = None,
        compare_attendees: bool = False,
        run_timeout_seconds: float | None = None,
    ) -> None:
        self._client = client
        self._parser = parser
        self._policy = policy or ParticipantPolicy()
        self._compare_attendees = compare_attendees
        self._run_timeout_seconds = run_timeout_seconds

    def _check_calendar(self, calendar_id: str | None) -> str:
        if not calendar_id or not calendar_id.strip():
            raise ConfigurationError("missing calendar id")
        calendar_id = calendar_id.strip()
        if not self._client.exists(calendar_id):
            raise ConfigurationError(f"{calendar_id} does not exist")
        return calendar_id

    def run(
        self,
        calendar_id: str | None,
        feed: bytes | None,
        organizer_allow_list: Iterable[str] | None = None,
    ) -> SyncOutcome:
        """Converge ``calendar_id`` to the events in ``feed``.

        Configuration and parse errors are raised before any mutation.
        """
        if feed is None:
            raise ConfigurationError("missing feed source")
        calendar_id = self._check_calendar(calendar_id)
        deadline = Deadline(self._run_timeout_seconds)

        source = self._parser.parse(feed)
        snapshot = RemoteSnapshot.load(self._client, calendar_id)

        outcome = reconcile(
            self._client,
            calendar_id,
            source.events,
            snapshot,
            organizer_allow_list,
            policy=self._policy,
            compare_attendees=self._compare_attendees,
            deadline=deadline,
        )

        logger.info("Feed size: %d", len(source.events))
        logger.info("Unchanged: %d", outcome.unchanged)
        logger.info("Created: %d", outcome.created)
        logger.info("Updated: %d", outcome.updated)
        logger.info("Restored: %d", outcome.restored)
        logger.info("Deleted: %d", outcome.deleted)
        logger.info("Cancelled in feed: %d", outcome.source_cancelled)
        logger.info(
            "Unchanged + Created + Updated + Restored: %d", outcome.considered
        )
        return outcome

    def purge(self, calendar_id: str | None) -> int:
        """Delete every non-cancelled remote event. Returns how many."""
        calendar_id = self._check_calendar(calendar_id)
        logger.info("Purging events on %s", calendar_id)

        deleted = 0
        for event in load_all(self._client, calendar_id, include_cancelled=True):
            if event.cancelled:
                continue
            self._client.delete(calendar_id, event.id)
            logger.debug("Deleted: %s '%s'", event.id, event.summary)
            deleted += 1

        logger.info("Purge done. %d event(s) deleted.", deleted)
        return deleted
