"""
icalsync — Command-line entry point.

    icalsync -c CALENDAR_ID -f FEED [-o a@x.edu,b@x.edu] [-i USER] [-v]
    icalsync -c CALENDAR_ID --purge
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from urllib.parse import urlparse

from icalsync.adapters.google_calendar import GoogleCalendarClient
from icalsync.adapters.ics_feed import IcsFeedParser
from icalsync.config import settings
from icalsync.core.errors import (
    ConfigurationError,
    DeadlineExceededError,
    UnsupportedRuleError,
)
from icalsync.core.participants import ParticipantPolicy
from icalsync.core.sync_service import SyncService
from icalsync.integrations.feed_source import is_url, read_feed
from icalsync.ports.calendar_port import CalendarError
from icalsync.ports.feed_port import FeedError

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="icalsync",
        description="One-way sync of an ICS feed into a Google calendar.",
    )
    parser.add_argument(
        "-f", "--file", dest="ics_file",
        help="ICS file to sync: local path or http[s] url",
    )
    parser.add_argument(
        "-c", "--calendar-id", dest="calendar_id",
        help="Google calendar ID",
    )
    parser.add_argument(
        "-p", "--purge", action="store_true",
        help="Force removing all Google calendar events and exit",
    )
    parser.add_argument(
        "-o", "--organizers",
        help="Only sync ICS events with these organizers (comma separated list)",
    )
    parser.add_argument(
        "-i", "--impersonator",
        help="Account to impersonate",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Verbose output",
    )
    return parser


def parse_organizers(value: str | None) -> list[str]:
    if not value:
        return list(settings.ORGANIZERS)
    return [o.strip().lower() for o in value.split(",") if o.strip()]


def log_file_path(
    log_dir: str, organizers: list[str], ics_file: str | None
) -> Path:
    """<log_dir>/<first organizer's user>/<feed name>.log"""
    user = organizers[0].split("@")[0] if organizers else "all"
    if ics_file and is_url(ics_file):
        name = Path(urlparse(ics_file).path).name or urlparse(ics_file).netloc
    elif ics_file:
        name = Path(ics_file).name
    else:
        name = "purge"
    return Path(log_dir) / user / f"{name}.log"


def setup_logging(verbose: bool, log_path: Path | None = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=_LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # discovery and transport chatter drowns the sync log
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    organizers = parse_organizers(args.organizers)
    setup_logging(
        args.verbose, log_file_path(settings.LOG_DIR, organizers, args.ics_file)
    )

    try:
        if not args.calendar_id:
            raise ConfigurationError("missing option calendar_id")

        client = GoogleCalendarClient.from_settings(impersonator=args.impersonator)
        service = SyncService(
            client,
            IcsFeedParser(settings.TIMEZONE),
            policy=ParticipantPolicy(
                domain=settings.INSTITUTION_DOMAIN,
                skip_list=tuple(settings.ATTENDEE_SKIP_LIST),
            ),
            compare_attendees=settings.COMPARE_ATTENDEES,
            run_timeout_seconds=settings.RUN_TIMEOUT_SECONDS or None,
        )

        if args.purge:
            service.purge(args.calendar_id)
            return 0

        if not args.ics_file:
            raise ConfigurationError("missing ICS file")
        outcome = service.run(args.calendar_id, read_feed(args.ics_file), organizers)
        logger.info("Sync finished: %s", outcome.to_dict())
        return 0
    except DeadlineExceededError as exc:
        logger.error("%s; partial result: %s", exc, exc.outcome.to_dict() if exc.outcome else {})
        return 1
    except (ConfigurationError, FeedError, UnsupportedRuleError, CalendarError) as exc:
        logger.error("Sync failed: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
