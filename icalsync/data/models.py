"""
icalsync — Data Models.

Three vocabularies:
SourceEvent is what the feed says, CanonicalEvent is that same event spoken
in the remote store's terms, RemoteEvent is what the store currently holds.
The identity mapper (core.identity) is the only place one becomes another.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Union

# A free-text property may arrive as several parts (e.g. a repeated
# SUMMARY line); core.identity.flatten joins them.
TextValue = Union[str, tuple[str, ...], list[str], None]

# datetime for timed events, date for all-day events
Instant = Union[datetime, date]


@dataclass(frozen=True)
class SourceAttendee:
    """One ATTENDEE line as the feed wrote it."""

    address: str | None                     # raw cal-address, e.g. "mailto:A@x.edu"
    display_name: str | None = None         # CN parameter
    participation_status: str | None = None  # PARTSTAT parameter


@dataclass(frozen=True)
class SourceRecurrenceRule:
    """Structured RRULE. Empty tuples mean the part is absent."""

    freq: str | None = None
    until: str | None = None   # iCalendar DATE or DATE-TIME text
    count: int | None = None
    interval: int | None = None
    by_second: tuple[int, ...] = ()
    by_minute: tuple[int, ...] = ()
    by_hour: tuple[int, ...] = ()
    by_day: tuple[str, ...] = ()
    by_month_day: tuple[int, ...] = ()
    by_year_day: tuple[int, ...] = ()
    by_week_no: tuple[int, ...] = ()
    by_month: tuple[int, ...] = ()
    by_set_pos: tuple[int, ...] = ()
    wkst: str | None = None


@dataclass(frozen=True)
class SourceEvent:
    """A VEVENT from the feed. Never mutated, never persisted."""

    uid: str
    start: Instant
    recurrence_id: str | None = None
    sequence: int | None = None
    summary: TextValue = None
    description: TextValue = None
    location: TextValue = None
    status: str | None = None
    transparency: str | None = None
    end: Instant | None = None
    rrules: tuple[SourceRecurrenceRule, ...] = ()
    organizers: tuple[str, ...] = ()
    attendees: tuple[SourceAttendee, ...] = ()


@dataclass(frozen=True)
class SourceCalendar:
    events: tuple[SourceEvent, ...] = ()


@dataclass
class Attendee:
    """An attendee in the remote store's vocabulary."""

    email: str
    display_name: str | None = None
    response_status: str = "needsAction"


@dataclass
class CanonicalEvent:
    """A source event projected into the remote store's field vocabulary."""

    id: str
    start: Instant
    summary: str | None = None
    description: str | None = None
    location: str | None = None
    status: str = "confirmed"
    transparency: str = "opaque"
    end: Instant | None = None
    recurrence_rule: str | None = None
    attendees: list[Attendee] | None = None

    @property
    def cancelled(self) -> bool:
        return self.status == "cancelled"


@dataclass
class RemoteEvent:
    """An event as the remote store holds it, cancelled ones included.

    created/updated/html_link are store metadata and never compared.
    """

    id: str
    status: str = "confirmed"
    summary: str | None = None
    description: str | None = None
    location: str | None = None
    transparency: str = "opaque"
    start: Instant | None = None
    end: Instant | None = None
    recurrence: list[str] = field(default_factory=list)
    attendees: list[Attendee] | None = None
    created: str | None = None
    updated: str | None = None
    html_link: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.status == "cancelled"


@dataclass
class SyncOutcome:
    """Counters for one sync run.

    unchanged + created + updated + restored == considered, where events
    skipped by the organizer allow-list are not considered.
    """

    unchanged: int = 0
    created: int = 0
    updated: int = 0
    restored: int = 0
    deleted: int = 0
    source_cancelled: int = 0

    @property
    def considered(self) -> int:
        return self.unchanged + self.created + self.updated + self.restored

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["considered"] = self.considered
        return payload
