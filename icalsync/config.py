"""
icalsync — Centralized configuration.

Loads all settings from .env and validates them.
Core modules never read this directly; the CLI and the adapters pass the
values they need down as plain parameters.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from icalsync/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


def _split_csv(v: str | list[str] | None) -> list[str]:
    if isinstance(v, list):
        return [str(item).strip() for item in v if str(item).strip()]
    if isinstance(v, str) and v.strip():
        return [item.strip() for item in v.split(",") if item.strip()]
    return []


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Google Calendar — installed-app OAuth flow
    GOOGLE_CREDENTIALS_PATH: str = "credentials.json"
    GOOGLE_TOKEN_PATH: str = "token.json"

    # Domain-wide delegation: when set, application-default credentials
    # act on behalf of this account instead of the OAuth token.
    GOOGLE_IMPERSONATOR: str = ""

    # Zone sent with every dateTime and attached to floating feed times
    TIMEZONE: str = "America/Chicago"

    # Attendee policy
    INSTITUTION_DOMAIN: str = ""
    ATTENDEE_SKIP_LIST: list[str] = ["local@host.local"]

    # Organizer allow-list used when --organizers is not given
    ORGANIZERS: list[str] = []

    # Also treat attendee drift as a reason to update
    COMPARE_ATTENDEES: bool = False

    # Timeouts (seconds). RUN_TIMEOUT_SECONDS=0 disables the run deadline.
    REQUEST_TIMEOUT_SECONDS: int = 60
    RUN_TIMEOUT_SECONDS: int = 3600

    LIST_PAGE_SIZE: int = 2500

    LOG_DIR: str = "logs"

    @field_validator("ATTENDEE_SKIP_LIST", "ORGANIZERS", mode="before")
    @classmethod
    def parse_csv(cls, v: str | list[str] | None) -> list[str]:
        return _split_csv(v)

    @field_validator("ORGANIZERS", mode="after")
    @classmethod
    def lower_organizers(cls, v: list[str]) -> list[str]:
        return [item.lower() for item in v]

    @field_validator(
        "REQUEST_TIMEOUT_SECONDS", "RUN_TIMEOUT_SECONDS", "LIST_PAGE_SIZE", mode="before"
    )
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @field_validator("COMPARE_ATTENDEES", mode="before")
    @classmethod
    def parse_bool(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in {"1", "true", "yes", "on"}


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        GOOGLE_CREDENTIALS_PATH=os.getenv("GOOGLE_CREDENTIALS_PATH", "credentials.json"),
        GOOGLE_TOKEN_PATH=os.getenv("GOOGLE_TOKEN_PATH", "token.json"),
        GOOGLE_IMPERSONATOR=os.getenv("GOOGLE_IMPERSONATOR", ""),
        TIMEZONE=os.getenv("TIMEZONE", "America/Chicago"),
        INSTITUTION_DOMAIN=os.getenv("INSTITUTION_DOMAIN", "").strip().lower(),
        ATTENDEE_SKIP_LIST=os.getenv("ATTENDEE_SKIP_LIST", "local@host.local"),
        ORGANIZERS=os.getenv("ORGANIZERS", ""),
        COMPARE_ATTENDEES=os.getenv("COMPARE_ATTENDEES", "false"),
        REQUEST_TIMEOUT_SECONDS=os.getenv("REQUEST_TIMEOUT_SECONDS", "60"),
        RUN_TIMEOUT_SECONDS=os.getenv("RUN_TIMEOUT_SECONDS", "3600"),
        LIST_PAGE_SIZE=os.getenv("LIST_PAGE_SIZE", "2500"),
        LOG_DIR=os.getenv("LOG_DIR", "logs"),
    )


# Singleton — imported by the CLI and adapters as:
#   from icalsync.config import settings
settings = _load_settings()
