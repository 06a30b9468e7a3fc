"""
icalsync — Identity & Field Mapper.

The single conversion boundary between the feed and the remote store:
a SourceEvent goes in, the CanonicalEvent the store should hold comes out.
Pure — no I/O, no clock.
"""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timedelta

from icalsync.core.participants import ParticipantPolicy, filter_attendees
from icalsync.core.recurrence import translate_recurrence
from icalsync.data.models import CanonicalEvent, SourceEvent, TextValue

logger = logging.getLogger(__name__)

# Google Calendar rejects event ids shorter than this
MIN_ID_LENGTH = 5


def derive_id(uid: str, recurrence_id: str | None, sequence: int | None) -> str:
    """Deterministic remote id for a (uid, recurrence-id, sequence) triple.

    base32hex of the concatenated fields, lower-cased and unpadded, so the
    result only uses [0-9a-v], the remote store's event-id alphabet.
    Ids shorter than the store's minimum length are right-padded with "0".
    """
    raw = "".join("" if part is None else str(part) for part in (uid, recurrence_id, sequence))
    encoded = base64.b32hexencode(raw.encode("utf-8")).decode("ascii").rstrip("=").lower()
    return encoded.ljust(MIN_ID_LENGTH, "0")


def flatten(value: TextValue) -> str | None:
    """Join multi-part text into one string; empty text becomes None."""
    if isinstance(value, (list, tuple)):
        value = "".join(str(part) for part in value)
    if value is None:
        return None
    text = str(value)
    return text or None


def canonicalize(
    source: SourceEvent, policy: ParticipantPolicy | None = None
) -> CanonicalEvent:
    """Project a feed event into the remote store's vocabulary.

    Raises:
        UnsupportedRuleError: the event's recurrence rule cannot be forwarded.
    """
    rules = translate_recurrence(source.rrules)
    if rules and len(rules) > 1:
        logger.warning(
            "Event %s has %d recurrence rules; keeping the first: %s",
            source.uid,
            len(rules),
            rules[0],
        )

    end = source.end
    if not isinstance(source.start, datetime):
        # all-day events always span at least one day
        if end is None or (not isinstance(end, datetime) and end <= source.start):
            end = source.start + timedelta(days=1)
    elif end is not None and end == source.start:
        end = None

    status = flatten(source.status)
    transparency = flatten(source.transparency)

    return CanonicalEvent(
        id=derive_id(source.uid, source.recurrence_id, source.sequence),
        summary=flatten(source.summary),
        description=flatten(source.description),
        location=flatten(source.location),
        status=status.lower() if status else "confirmed",
        transparency=transparency.lower() if transparency else "opaque",
        start=source.start,
        end=end,
        recurrence_rule=rules[0] if rules else None,
        attendees=filter_attendees(source.attendees, policy),
    )
