"""Tests for icalsync.core.sync_service — run and purge end to end."""

from unittest.mock import MagicMock

import pytest

from fake_client import FakeCalendarClient, make_source
from icalsync.adapters.ics_feed import IcsFeedParser
from icalsync.core.errors import ConfigurationError, DeadlineExceededError
from icalsync.core.identity import derive_id
from icalsync.core.participants import ParticipantPolicy
from icalsync.core.reconciler import Deadline
from icalsync.core.sync_service import SyncService
from icalsync.data.models import (
    RemoteEvent,
    SourceAttendee,
    SourceCalendar,
    SyncOutcome,
)
from icalsync.ports.feed_port import MalformedFeedError

FEED = b"""BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Test//EN
BEGIN:VEVENT
UID:evt-1@inst.edu
DTSTART:20260214T160000Z
DTEND:20260214T170000Z
SUMMARY:Faculty meeting
LOCATION:Morgan Hall 101
END:VEVENT
BEGIN:VEVENT
UID:evt-2@inst.edu
DTSTART;VALUE=DATE:20260301
SUMMARY:Spring break
TRANSP:TRANSPARENT
RRULE:FREQ=WEEKLY;COUNT=2
END:VEVENT
END:VCALENDAR
"""


def _parser_for(*sources):
    parser = MagicMock()
    parser.parse.return_value = SourceCalendar(events=tuple(sources))
    return parser


# ---------------------------------------------------------------------------
# Tests for run
# ---------------------------------------------------------------------------


class TestRun:
    def test_real_feed_creates_then_is_idempotent(self, fake_client):
        service = SyncService(fake_client, IcsFeedParser("UTC"))

        first = service.run("cal-1", FEED)
        assert first == SyncOutcome(created=2)

        fake_client.calls.clear()
        second = service.run("cal-1", FEED)
        assert second == SyncOutcome(unchanged=2)
        assert fake_client.mutations() == []

    def test_ids_come_from_uid(self, fake_client):
        SyncService(fake_client, IcsFeedParser("UTC")).run("cal-1", FEED)
        assert set(fake_client.events) == {
            derive_id("evt-1@inst.edu", None, None),
            derive_id("evt-2@inst.edu", None, None),
        }

    def test_event_removed_from_feed_is_deleted(self, fake_client):
        service = SyncService(fake_client, _parser_for(make_source("a"), make_source("b")))
        service.run("cal-1", b"feed")

        service._parser = _parser_for(make_source("a"))
        outcome = service.run("cal-1", b"feed")
        assert outcome == SyncOutcome(unchanged=1, deleted=1)

    def test_organizer_allow_list(self, fake_client):
        sources = (
            make_source("a", organizers=("mailto:a@inst.edu",)),
            make_source("b", organizers=("mailto:b@inst.edu",)),
        )
        outcome = SyncService(fake_client, _parser_for(*sources)).run(
            "cal-1", b"feed", ["a@inst.edu"]
        )
        assert outcome == SyncOutcome(created=1)

    def test_missing_feed_is_configuration_error(self, fake_client):
        with pytest.raises(ConfigurationError):
            SyncService(fake_client, _parser_for()).run("cal-1", None)

    @pytest.mark.parametrize("calendar_id", [None, "", "   "])
    def test_missing_calendar_id_is_configuration_error(self, fake_client, calendar_id):
        with pytest.raises(ConfigurationError):
            SyncService(fake_client, _parser_for()).run(calendar_id, b"feed")

    def test_unknown_calendar_is_configuration_error(self, fake_client):
        parser = _parser_for(make_source())
        with pytest.raises(ConfigurationError):
            SyncService(fake_client, parser).run("nope", b"feed")
        parser.parse.assert_not_called()
        assert fake_client.calls == []

    def test_parse_error_happens_before_any_remote_call(self, fake_client):
        parser = MagicMock()
        parser.parse.side_effect = MalformedFeedError("bad")
        with pytest.raises(MalformedFeedError):
            SyncService(fake_client, parser).run("cal-1", b"garbage")
        assert fake_client.calls == []

    def test_attendee_policy_is_applied(self, fake_client):
        source = make_source(
            attendees=(
                SourceAttendee("mailto:ann@inst.edu", "Ann", "ACCEPTED"),
                SourceAttendee("mailto:bob@other.org"),
                SourceAttendee("mailto:local@host.local"),
            )
        )
        service = SyncService(
            fake_client,
            _parser_for(source),
            policy=ParticipantPolicy(domain="inst.edu"),
        )
        service.run("cal-1", b"feed")
        (event,) = fake_client.events.values()
        assert [a.email for a in event.attendees] == ["ann@inst.edu"]
        assert event.attendees[0].response_status == "accepted"

    def test_run_deadline(self, fake_client, monkeypatch):
        ticks = iter([0.0, 0.0, 100.0, 100.0])
        monkeypatch.setattr(
            "icalsync.core.sync_service.Deadline",
            lambda seconds: Deadline(seconds, clock=lambda: next(ticks)),
        )
        service = SyncService(
            fake_client,
            _parser_for(make_source("a"), make_source("b")),
            run_timeout_seconds=10,
        )
        with pytest.raises(DeadlineExceededError) as excinfo:
            service.run("cal-1", b"feed")
        assert excinfo.value.outcome.created == 1


# ---------------------------------------------------------------------------
# Tests for purge
# ---------------------------------------------------------------------------


class TestPurge:
    def test_deletes_active_events_only(self):
        client = FakeCalendarClient(
            [
                RemoteEvent(id="a"),
                RemoteEvent(id="b"),
                RemoteEvent(id="c", status="cancelled"),
            ]
        )
        assert SyncService(client, _parser_for()).purge("cal-1") == 2
        assert client.mutations() == [("delete", "a"), ("delete", "b")]
        assert all(e.cancelled for e in client.events.values())

    def test_empty_calendar(self, fake_client):
        assert SyncService(fake_client, _parser_for()).purge("cal-1") == 0

    def test_unknown_calendar(self, fake_client):
        with pytest.raises(ConfigurationError):
            SyncService(fake_client, _parser_for()).purge("nope")
