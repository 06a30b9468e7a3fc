"""
icalsync — Participant Filter.

Derives the organizer set and the attendee list the remote store will see.
Only attendees inside the institutional domain are forwarded, and a skip-list
removes placeholder addresses some feed producers emit.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from icalsync.data.models import Attendee, SourceAttendee

DEFAULT_SKIP_LIST = ("local@host.local",)

RESPONSE_STATUS_VALUES = {
    "NEEDS-ACTION": "needsAction",
    "ACCEPTED": "accepted",
    "DECLINED": "declined",
    "TENTATIVE": "tentative",
}
DEFAULT_RESPONSE_STATUS = "needsAction"

_MAILTO_RE = re.compile(r"mailto:([^;]*)", re.IGNORECASE)


@dataclass(frozen=True)
class ParticipantPolicy:
    """Which attendees are forwarded.

    domain: e.g. "inst.edu"; an empty domain forwards every address.
    skip_list: an attendee whose address contains any entry is dropped.
    """

    domain: str = ""
    skip_list: tuple[str, ...] = field(default=DEFAULT_SKIP_LIST)


def extract_address(raw: str | None) -> str | None:
    """Return the lower-cased e-mail from a cal-address, or None."""
    if not raw:
        return None
    text = str(raw).replace('"', "").strip()
    match = _MAILTO_RE.search(text)
    if match:
        address = match.group(1).strip().lower()
    elif "@" in text and ":" not in text:
        address = text.lower()
    else:
        return None
    return address or None


def filter_organizers(raw: Iterable[str] | None) -> set[str] | None:
    """Organizer addresses of an event; None when there are none."""
    organizers = {addr for addr in (extract_address(r) for r in raw or ()) if addr}
    return organizers or None


def _in_domain(address: str, domain: str) -> bool:
    if not domain:
        return True
    return address.endswith("@" + domain.lower().lstrip("@"))


def filter_attendees(
    raw: Iterable[SourceAttendee] | None,
    policy: ParticipantPolicy | None = None,
) -> list[Attendee] | None:
    """Attendees to forward, in feed order; None when nobody is left."""
    policy = policy or ParticipantPolicy()
    attendees: list[Attendee] = []
    for source in raw or ():
        address = extract_address(source.address)
        # the remote store requires an address
        if address is None:
            continue
        if not _in_domain(address, policy.domain):
            continue
        if any(word and word.lower() in address for word in policy.skip_list):
            continue

        status_key = (source.participation_status or "").strip().upper()
        attendees.append(
            Attendee(
                email=address,
                display_name=source.display_name or None,
                response_status=RESPONSE_STATUS_VALUES.get(
                    status_key, DEFAULT_RESPONSE_STATUS
                ),
            )
        )
    return attendees or None


def organizer_allowed(
    organizers: set[str] | None, allow_list: Iterable[str] | None
) -> bool:
    """Whether an event passes the organizer allow-list.

    An empty allow-list lets everything through, and so does an event that
    names no organizer at all.
    """
    allowed = {a.strip().lower() for a in allow_list or () if a and a.strip()}
    if not allowed or not organizers:
        return True
    return bool(allowed & organizers)
