"""Shared test fixtures and configuration.

Pins environment variables before any icalsync import so a developer's
.env cannot change test behaviour.
"""

import os

# Patch env vars BEFORE any icalsync imports
os.environ.setdefault("TIMEZONE", "America/Chicago")
os.environ.setdefault("INSTITUTION_DOMAIN", "inst.edu")
os.environ.setdefault("ATTENDEE_SKIP_LIST", "local@host.local")
os.environ.setdefault("ORGANIZERS", "")
os.environ.setdefault("RUN_TIMEOUT_SECONDS", "0")
os.environ.setdefault("REQUEST_TIMEOUT_SECONDS", "60")
os.environ.setdefault("LIST_PAGE_SIZE", "2500")
os.environ.setdefault("COMPARE_ATTENDEES", "false")
os.environ.setdefault("GOOGLE_IMPERSONATOR", "")

import pytest

from fake_client import FakeCalendarClient


@pytest.fixture
def fake_client():
    """An empty remote calendar with id "cal-1"."""
    return FakeCalendarClient()


@pytest.fixture
def policy():
    from icalsync.core.participants import ParticipantPolicy
    return ParticipantPolicy(domain="inst.edu", skip_list=("local@host.local",))
