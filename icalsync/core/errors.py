"""Errors raised by the sync core.

Remote failures live in icalsync.ports.calendar_port (CalendarError) and
feed failures in icalsync.ports.feed_port (FeedError).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from icalsync.data.models import SyncOutcome


class ConfigurationError(Exception):
    """Missing calendar id, missing feed, or a target calendar that does not exist."""


class UnsupportedRuleError(ValueError):
    """A recurrence rule uses a part the remote store cannot represent."""

    def __init__(self, field: str, rule: object) -> None:
        self.field = field
        self.rule = rule
        super().__init__(f"Unsupported recurrence rule part {field}: {rule!r}")


class DeadlineExceededError(Exception):
    """The overall run deadline passed before the run finished.

    ``outcome`` holds the counters for the work already done.
    """

    def __init__(self, message: str, outcome: SyncOutcome | None = None) -> None:
        super().__init__(message)
        self.outcome = outcome
