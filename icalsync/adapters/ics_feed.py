"""ICS feed adapter — implements FeedParser with the icalendar library.

Turns raw VCALENDAR bytes into SourceEvent records. Values are kept as the
feed states them; normalisation into the remote vocabulary happens later in
core.identity.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from icalendar import Calendar as iCalendar

from icalsync.data.models import (
    Instant,
    SourceAttendee,
    SourceCalendar,
    SourceEvent,
    SourceRecurrenceRule,
    TextValue,
)
from icalsync.ports.feed_port import MalformedFeedError, MultipleCalendarsError

logger = logging.getLogger(__name__)


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _text(value) -> TextValue:
    """vText, or a tuple of parts when the property is repeated."""
    if value is None:
        return None
    if isinstance(value, list):
        return tuple(str(v) for v in value)
    return str(value)


def _format_until(value) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        return value.strftime("%Y%m%dT%H%M%S")
    if isinstance(value, date):
        return value.strftime("%Y%m%d")
    return str(value)


def _ints(rule, key: str) -> tuple[int, ...]:
    return tuple(int(v) for v in _as_list(rule.get(key)))


def _first(rule, key: str):
    values = _as_list(rule.get(key))
    return values[0] if values else None


def _parse_rrule(rule) -> SourceRecurrenceRule:
    count = _first(rule, "COUNT")
    interval = _first(rule, "INTERVAL")
    until = _first(rule, "UNTIL")
    freq = _first(rule, "FREQ")
    wkst = _first(rule, "WKST")
    return SourceRecurrenceRule(
        freq=str(freq) if freq is not None else None,
        until=_format_until(until) if until is not None else None,
        count=int(count) if count is not None else None,
        interval=int(interval) if interval is not None else None,
        by_second=_ints(rule, "BYSECOND"),
        by_minute=_ints(rule, "BYMINUTE"),
        by_hour=_ints(rule, "BYHOUR"),
        by_day=tuple(str(v) for v in _as_list(rule.get("BYDAY"))),
        by_month_day=_ints(rule, "BYMONTHDAY"),
        by_year_day=_ints(rule, "BYYEARDAY"),
        by_week_no=_ints(rule, "BYWEEKNO"),
        by_month=_ints(rule, "BYMONTH"),
        by_set_pos=_ints(rule, "BYSETPOS"),
        wkst=str(wkst) if wkst is not None else None,
    )


def _parse_attendee(value) -> SourceAttendee:
    params = getattr(value, "params", {}) or {}
    cn = params.get("CN")
    partstat = params.get("PARTSTAT")
    return SourceAttendee(
        address=str(value) if value is not None else None,
        display_name=str(cn) if cn else None,
        participation_status=str(partstat) if partstat else None,
    )


class IcsFeedParser:
    """icalendar implementation of FeedParser.

    Floating date-times (no TZID, no Z) are pinned to ``default_timezone``.
    """

    def __init__(self, default_timezone: str = "UTC") -> None:
        self._tz = ZoneInfo(default_timezone)

    def _instant(self, value) -> Instant:
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=self._tz)
        return value

    def _parse_event(self, component) -> SourceEvent:
        uid = component.get("UID")
        if uid is None or not str(uid).strip():
            raise MalformedFeedError("VEVENT without UID")
        uid = str(uid)

        if component.get("DTSTART") is None:
            raise MalformedFeedError(f"VEVENT {uid} without DTSTART")
        start = self._instant(component.decoded("DTSTART"))

        end = None
        if component.get("DTEND") is not None:
            end = self._instant(component.decoded("DTEND"))
        elif component.get("DURATION") is not None:
            end = start + component.decoded("DURATION")
        elif not isinstance(start, datetime):
            # an all-day event without an end lasts one day
            end = start + timedelta(days=1)

        recurrence_id = component.get("RECURRENCE-ID")
        if recurrence_id is not None:
            recurrence_id = recurrence_id.to_ical().decode("utf-8")

        sequence = component.get("SEQUENCE")
        status = component.get("STATUS")
        transparency = component.get("TRANSP")

        return SourceEvent(
            uid=uid,
            start=start,
            end=end,
            recurrence_id=recurrence_id,
            sequence=int(sequence) if sequence is not None else None,
            summary=_text(component.get("SUMMARY")),
            description=_text(component.get("DESCRIPTION")),
            location=_text(component.get("LOCATION")),
            status=str(status) if status is not None else None,
            transparency=str(transparency) if transparency is not None else None,
            rrules=tuple(_parse_rrule(r) for r in _as_list(component.get("RRULE"))),
            organizers=tuple(str(o) for o in _as_list(component.get("ORGANIZER"))),
            attendees=tuple(_parse_attendee(a) for a in _as_list(component.get("ATTENDEE"))),
        )

    def parse(self, data: bytes) -> SourceCalendar:
        """Parse one VCALENDAR.

        Raises:
            MalformedFeedError: the payload is not a calendar.
            MultipleCalendarsError: the payload holds more than one calendar.
        """
        try:
            calendars = iCalendar.from_ical(data, multiple=True)
        except Exception as exc:
            logger.error("Cannot parse feed: %s", exc)
            raise MalformedFeedError(f"Cannot parse feed: {exc}") from exc

        calendars = [c for c in calendars if c.name == "VCALENDAR"]
        if not calendars:
            raise MalformedFeedError("Feed contains no VCALENDAR")
        if len(calendars) > 1:
            raise MultipleCalendarsError(
                f"Can't process a feed with {len(calendars)} calendars"
            )

        try:
            events = tuple(
                self._parse_event(component)
                for component in calendars[0].walk("VEVENT")
            )
        except MalformedFeedError:
            raise
        except Exception as exc:
            logger.error("Cannot read feed event: %s", exc)
            raise MalformedFeedError(f"Cannot read feed event: {exc}") from exc

        logger.info("Parsed %d event(s) from feed", len(events))
        return SourceCalendar(events=events)
