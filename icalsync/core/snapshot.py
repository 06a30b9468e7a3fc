"""
icalsync — Snapshot Loader.

Pulls the whole remote event set, cancelled events included, before any
reconciliation starts, and hands it to the engine as an owned working set.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from icalsync.core.errors import ConfigurationError
from icalsync.data.models import RemoteEvent
from icalsync.ports.calendar_port import CalendarNotFoundError

if TYPE_CHECKING:
    from icalsync.ports.calendar_port import RemoteCalendarClient

logger = logging.getLogger(__name__)


def load_all(
    client: RemoteCalendarClient,
    calendar_id: str,
    include_cancelled: bool = True,
) -> list[RemoteEvent]:
    """Follow continuation tokens until the store reports no further page.

    Raises:
        ConfigurationError: the store says the calendar does not exist.
        CalendarError: any other listing failure.
    """
    events: list[RemoteEvent] = []
    page_token: str | None = None
    pages = 0
    while True:
        try:
            items, next_token = client.list_events(
                calendar_id, include_cancelled, page_token
            )
        except CalendarNotFoundError as exc:
            raise ConfigurationError(f"Calendar {calendar_id} does not exist") from exc
        events.extend(items)
        pages += 1
        # Some responses repeat the last token instead of omitting it
        if not next_token or next_token == page_token:
            break
        page_token = next_token

    logger.info(
        "Loaded %d remote event(s) from %s in %d page(s)",
        len(events),
        calendar_id,
        pages,
    )
    return events


class RemoteSnapshot:
    """The remote events not yet matched by a source event, keyed by id.

    Owned by one reconciliation run. Matching removes an event; whatever
    is left after the source loop is unmatched.
    """

    def __init__(self, events: Iterable[RemoteEvent] = ()) -> None:
        self._events: dict[str, RemoteEvent] = {}
        for event in events:
            if event.id in self._events:
                logger.warning("Duplicate remote event id %s ignored", event.id)
                continue
            self._events[event.id] = event

    @classmethod
    def load(
        cls, client: RemoteCalendarClient, calendar_id: str
    ) -> RemoteSnapshot:
        return cls(load_all(client, calendar_id, include_cancelled=True))

    def pop(self, event_id: str) -> RemoteEvent | None:
        return self._events.pop(event_id, None)

    def remaining(self) -> list[RemoteEvent]:
        return list(self._events.values())

    def __len__(self) -> int:
        return len(self._events)
