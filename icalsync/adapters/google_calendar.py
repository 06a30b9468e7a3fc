"""Google Calendar adapter — implements RemoteCalendarClient for Calendar API v3.

All Google-specific logic lives here. The sync core never imports this
directly; it depends on the RemoteCalendarClient protocol.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from googleapiclient.errors import HttpError

from icalsync.config import settings
from icalsync.data.models import Attendee, CanonicalEvent, Instant, RemoteEvent
from icalsync.integrations.google_auth import get_calendar_service
from icalsync.ports.calendar_port import CalendarError, CalendarNotFoundError

logger = logging.getLogger(__name__)


def _is_not_found(exc: Exception) -> bool:
    return isinstance(exc, HttpError) and getattr(exc.resp, "status", None) == 404


def _format_time(value: Instant, timezone: str) -> dict:
    """Calendar API time; a zoned instant keeps its own zone for recurrence expansion."""
    if isinstance(value, datetime):
        if isinstance(value.tzinfo, ZoneInfo):
            timezone = value.tzinfo.key
        return {"dateTime": value.isoformat(), "timeZone": timezone}
    return {"date": value.isoformat()}


def _parse_time(value: dict | None) -> Instant | None:
    if not value:
        return None
    if value.get("dateTime"):
        text = value["dateTime"]
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    if value.get("date"):
        return date.fromisoformat(value["date"])
    return None


def _build_event_body(event: CanonicalEvent, timezone: str) -> dict:
    """Construct a Calendar API event body from a CanonicalEvent.

    The API requires an end; an event without one is sent as zero-length
    (one day for all-day events).
    """
    end = event.end
    if end is None:
        if isinstance(event.start, datetime):
            end = event.start
        else:
            end = event.start + timedelta(days=1)

    body: dict = {
        "id": event.id,
        "status": event.status,
        "transparency": event.transparency,
        "start": _format_time(event.start, timezone),
        "end": _format_time(end, timezone),
    }
    if event.summary is not None:
        body["summary"] = event.summary
    if event.description is not None:
        body["description"] = event.description
    if event.location is not None:
        body["location"] = event.location
    if event.recurrence_rule:
        body["recurrence"] = [event.recurrence_rule]
    if event.attendees:
        attendees = []
        for a in event.attendees:
            entry = {"email": a.email, "responseStatus": a.response_status}
            if a.display_name:
                entry["displayName"] = a.display_name
            attendees.append(entry)
        body["attendees"] = attendees
    return body


def _parse_event(item: dict) -> RemoteEvent:
    """Map a Calendar API event resource onto a RemoteEvent.

    A zero-length timed event reads back with end=None, which is how an
    instant is stored.
    """
    start = _parse_time(item.get("start"))
    end = _parse_time(item.get("end"))
    if end is not None and end == start:
        end = None

    attendees = None
    if item.get("attendees"):
        attendees = [
            Attendee(
                email=a.get("email", "").lower(),
                display_name=a.get("displayName"),
                response_status=a.get("responseStatus", "needsAction"),
            )
            for a in item["attendees"]
            if a.get("email")
        ] or None

    return RemoteEvent(
        id=item.get("id", ""),
        status=item.get("status", "confirmed"),
        summary=item.get("summary") or None,
        description=item.get("description") or None,
        location=item.get("location") or None,
        transparency=item.get("transparency", "opaque"),
        start=start,
        end=end,
        recurrence=list(item.get("recurrence", [])),
        attendees=attendees,
        created=item.get("created"),
        updated=item.get("updated"),
        html_link=item.get("htmlLink"),
    )


class GoogleCalendarClient:
    """Google Calendar implementation of RemoteCalendarClient."""

    def __init__(
        self,
        service,
        timezone: str | None = None,
        page_size: int | None = None,
    ) -> None:
        self._service = service
        self._timezone = timezone or settings.TIMEZONE
        self._page_size = page_size or settings.LIST_PAGE_SIZE

    @classmethod
    def from_settings(cls, impersonator: str | None = None) -> GoogleCalendarClient:
        """Authenticate once and build a client for one sync run."""
        service = get_calendar_service(
            impersonator=impersonator or settings.GOOGLE_IMPERSONATOR or None,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )
        return cls(service)

    def exists(self, calendar_id: str) -> bool:
        try:
            self._service.calendars().get(calendarId=calendar_id).execute()
            return True
        except Exception as exc:
            if _is_not_found(exc):
                logger.warning("Calendar %s not found", calendar_id)
                return False
            logger.error("Failed to look up calendar %s: %s", calendar_id, exc)
            raise CalendarError(f"Failed to look up calendar: {exc}") from exc

    def list_events(
        self,
        calendar_id: str,
        include_cancelled: bool,
        page_token: str | None = None,
    ) -> tuple[list[RemoteEvent], str | None]:
        try:
            result = (
                self._service.events()
                .list(
                    calendarId=calendar_id,
                    showDeleted=include_cancelled,
                    maxResults=self._page_size,
                    pageToken=page_token,
                )
                .execute()
            )
        except Exception as exc:
            if _is_not_found(exc):
                raise CalendarNotFoundError(
                    f"Calendar {calendar_id} not found"
                ) from exc
            logger.error("Failed to list events on %s: %s", calendar_id, exc)
            raise CalendarError(f"Failed to list events: {exc}") from exc

        events = [_parse_event(item) for item in result.get("items", [])]
        logger.debug("Listed %d event(s) from %s", len(events), calendar_id)
        return events, result.get("nextPageToken")

    def insert(self, calendar_id: str, event: CanonicalEvent) -> RemoteEvent:
        body = _build_event_body(event, self._timezone)
        try:
            created = (
                self._service.events()
                .insert(calendarId=calendar_id, body=body)
                .execute()
            )
        except Exception as exc:
            logger.error("Failed to create event %s: %s", event.id, exc)
            raise CalendarError(f"Failed to create event: {exc}") from exc
        logger.debug("Event %s created — %s", event.id, created.get("htmlLink", ""))
        return _parse_event(created)

    def update(
        self, calendar_id: str, event_id: str, event: CanonicalEvent
    ) -> RemoteEvent:
        body = _build_event_body(event, self._timezone)
        try:
            updated = (
                self._service.events()
                .update(calendarId=calendar_id, eventId=event_id, body=body)
                .execute()
            )
        except Exception as exc:
            logger.error("Failed to update event %s: %s", event_id, exc)
            raise CalendarError(f"Failed to update event: {exc}") from exc
        logger.debug("Event %s updated", event_id)
        return _parse_event(updated)

    def delete(self, calendar_id: str, event_id: str) -> None:
        try:
            self._service.events().delete(
                calendarId=calendar_id, eventId=event_id
            ).execute()
        except Exception as exc:
            logger.error("Failed to delete event %s: %s", event_id, exc)
            raise CalendarError(f"Failed to delete event: {exc}") from exc
        logger.debug("Event %s deleted", event_id)
