"""Feed port — abstract interface for turning a calendar feed into events."""

from __future__ import annotations

from typing import Protocol

from icalsync.data.models import SourceCalendar


class FeedError(Exception):
    """Raised when a feed cannot be turned into a single source calendar."""


class MalformedFeedError(FeedError):
    """The payload is not a parsable calendar."""


class MultipleCalendarsError(FeedError):
    """The payload holds more than one calendar."""


class FeedSourceError(FeedError):
    """The feed could not be read from its path or URL."""


class FeedParser(Protocol):
    """Feed parsing used by the sync service."""

    def parse(self, data: bytes) -> SourceCalendar: ...
