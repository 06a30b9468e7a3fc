"""
icalsync — Equality Comparator.

Decides whether a remote event already agrees with its canonical form.
Store metadata (created/updated/links) never takes part.
"""

from __future__ import annotations

from icalsync.data.models import Attendee, CanonicalEvent, RemoteEvent

COMPARED_FIELDS = (
    "id",
    "summary",
    "status",
    "description",
    "location",
    "transparency",
    "start",
    "end",
)


def _attendee_keys(attendees: list[Attendee] | None) -> set[tuple[str, str]]:
    return {(a.email.lower(), a.response_status) for a in attendees or ()}


def events_equal(
    a: CanonicalEvent, b: RemoteEvent, compare_attendees: bool = False
) -> bool:
    """Field-wise equality, short-circuiting on the first mismatch.

    Attendees are left out unless compare_attendees is set, in which case
    the (email, response status) pairs must match as sets.
    """
    for name in COMPARED_FIELDS:
        if getattr(a, name) != getattr(b, name):
            return False
    if compare_attendees and _attendee_keys(a.attendees) != _attendee_keys(b.attendees):
        return False
    return True
