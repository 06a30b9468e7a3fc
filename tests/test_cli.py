"""Tests for icalsync.cli — argument handling, log layout, exit codes."""

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from fake_client import FakeCalendarClient
from icalsync import cli
from icalsync.ports.calendar_port import CalendarError
from icalsync.ports.feed_port import FeedSourceError

FEED = b"""BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Test//EN
BEGIN:VEVENT
UID:evt-1@inst.edu
DTSTART:20260214T160000Z
DTEND:20260214T170000Z
SUMMARY:Faculty meeting
ORGANIZER:mailto:dean@inst.edu
END:VEVENT
END:VCALENDAR
"""

_PATCH_FROM_SETTINGS = "icalsync.cli.GoogleCalendarClient.from_settings"
_PATCH_READ_FEED = "icalsync.cli.read_feed"


@pytest.fixture(autouse=True)
def _log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(cli.settings, "LOG_DIR", str(tmp_path / "logs"))
    yield
    # basicConfig(force=True) installed a FileHandler under tmp_path
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root.removeHandler(handler)


# ---------------------------------------------------------------------------
# Tests for helpers
# ---------------------------------------------------------------------------


class TestParseOrganizers:
    def test_comma_list(self):
        assert cli.parse_organizers(" A@inst.edu,b@inst.edu, ") == [
            "a@inst.edu",
            "b@inst.edu",
        ]

    def test_falls_back_to_settings(self, monkeypatch):
        monkeypatch.setattr(cli.settings, "ORGANIZERS", ["x@inst.edu"])
        assert cli.parse_organizers(None) == ["x@inst.edu"]


class TestLogFilePath:
    def test_file_feed(self):
        path = cli.log_file_path("logs", ["jdoe@inst.edu"], "/feeds/fall.ics")
        assert path == Path("logs") / "jdoe" / "fall.ics.log"

    def test_url_feed_without_organizers(self):
        path = cli.log_file_path("logs", [], "https://x.edu/cal/spring.ics?token=1")
        assert path == Path("logs") / "all" / "spring.ics.log"

    def test_url_without_path(self):
        path = cli.log_file_path("logs", [], "https://x.edu")
        assert path == Path("logs") / "all" / "x.edu.log"

    def test_purge(self):
        assert cli.log_file_path("logs", [], None) == Path("logs") / "all" / "purge.log"


class TestBuildParser:
    def test_all_options(self):
        args = cli.build_parser().parse_args(
            ["-f", "a.ics", "-c", "cal", "-p", "-o", "a@x", "-i", "admin@x", "-v"]
        )
        assert args.ics_file == "a.ics"
        assert args.calendar_id == "cal"
        assert args.purge is True
        assert args.organizers == "a@x"
        assert args.impersonator == "admin@x"
        assert args.verbose is True


# ---------------------------------------------------------------------------
# Tests for main
# ---------------------------------------------------------------------------


class TestMain:
    def test_sync_run(self, tmp_path):
        client = FakeCalendarClient()
        with patch(_PATCH_FROM_SETTINGS, return_value=client) as from_settings, \
                patch(_PATCH_READ_FEED, return_value=FEED) as read_feed:
            code = cli.main(["-c", "cal-1", "-f", "feed.ics", "-i", "admin@inst.edu"])

        assert code == 0
        from_settings.assert_called_once_with(impersonator="admin@inst.edu")
        read_feed.assert_called_once_with("feed.ics")
        assert len(client.events) == 1
        assert (tmp_path / "logs" / "all" / "feed.ics.log").exists()

    def test_organizer_filter(self):
        client = FakeCalendarClient()
        with patch(_PATCH_FROM_SETTINGS, return_value=client), \
                patch(_PATCH_READ_FEED, return_value=FEED):
            code = cli.main(["-c", "cal-1", "-f", "feed.ics", "-o", "other@inst.edu"])
        assert code == 0
        assert client.events == {}

    def test_purge(self):
        client = FakeCalendarClient()
        with patch(_PATCH_FROM_SETTINGS, return_value=client), \
                patch(_PATCH_READ_FEED, return_value=FEED):
            cli.main(["-c", "cal-1", "-f", "feed.ics"])
            code = cli.main(["-c", "cal-1", "-p"])
        assert code == 0
        assert all(e.cancelled for e in client.events.values())

    def test_missing_calendar_id(self):
        with patch(_PATCH_FROM_SETTINGS) as from_settings:
            assert cli.main(["-f", "feed.ics"]) == 1
        from_settings.assert_not_called()

    def test_missing_feed(self):
        with patch(_PATCH_FROM_SETTINGS, return_value=FakeCalendarClient()):
            assert cli.main(["-c", "cal-1"]) == 1

    def test_unknown_calendar(self):
        with patch(_PATCH_FROM_SETTINGS, return_value=FakeCalendarClient()), \
                patch(_PATCH_READ_FEED, return_value=FEED):
            assert cli.main(["-c", "nope", "-f", "feed.ics"]) == 1

    def test_unreadable_feed(self):
        with patch(_PATCH_FROM_SETTINGS, return_value=FakeCalendarClient()), \
                patch(_PATCH_READ_FEED, side_effect=FeedSourceError("gone")):
            assert cli.main(["-c", "cal-1", "-f", "feed.ics"]) == 1

    def test_remote_failure(self):
        client = MagicMock()
        client.exists.side_effect = CalendarError("quota")
        with patch(_PATCH_FROM_SETTINGS, return_value=client), \
                patch(_PATCH_READ_FEED, return_value=FEED):
            assert cli.main(["-c", "cal-1", "-f", "feed.ics"]) == 1
