"""Calendar port — abstract interface for the remote event store.

The sync core depends on this protocol, never on a specific provider.
"""

from __future__ import annotations

from typing import Protocol

from icalsync.data.models import CanonicalEvent, RemoteEvent


class CalendarError(Exception):
    """Raised when any remote calendar operation fails."""


class CalendarNotFoundError(CalendarError):
    """Raised when the remote store reports the calendar does not exist."""


class RemoteCalendarClient(Protocol):
    """Remote store operations used by the sync core.

    Every call blocks until the store answers. delete() is a soft delete:
    the event stays listable with status "cancelled".
    """

    def exists(self, calendar_id: str) -> bool: ...

    def list_events(
        self,
        calendar_id: str,
        include_cancelled: bool,
        page_token: str | None = None,
    ) -> tuple[list[RemoteEvent], str | None]: ...

    def insert(self, calendar_id: str, event: CanonicalEvent) -> RemoteEvent: ...

    def update(
        self, calendar_id: str, event_id: str, event: CanonicalEvent
    ) -> RemoteEvent: ...

    def delete(self, calendar_id: str, event_id: str) -> None: ...
