"""
icalsync — Google Calendar Authentication.

Two ways in:
- OAuth2 installed-app flow with a token file persisted between runs.
- Application-default (service account) credentials with domain-wide
  delegation, acting as the impersonated user.

Both build a Calendar API v3 service whose HTTP transport carries a
per-request timeout, so a stuck call cannot hang a sync run.
"""

from __future__ import annotations

import logging
from pathlib import Path

import google.auth
import google_auth_httplib2
import httplib2
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from icalsync.ports.calendar_port import CalendarError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]


def _user_credentials() -> Credentials:
    """Load, refresh or obtain OAuth2 user credentials.

    Flow:
    1. Try loading existing token from disk.
    2. If expired, refresh with the refresh token.
    3. If no valid credentials, run the interactive OAuth2 consent flow.
    4. Persist the (refreshed) token for next time.
    """
    from icalsync.config import settings

    token_path = Path(settings.GOOGLE_TOKEN_PATH)
    creds_path = Path(settings.GOOGLE_CREDENTIALS_PATH)
    creds: Credentials | None = None

    # 1. Load existing token
    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
        logger.debug("Loaded existing token from %s", token_path)

    # 2. Refresh or re-authenticate
    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
            logger.info("Token refreshed successfully")
        except Exception as exc:
            logger.warning("Token refresh failed (%s), re-authenticating", exc)
            creds = None

    if not creds or not creds.valid:
        if not creds_path.exists():
            raise FileNotFoundError(
                f"Google credentials file not found at {creds_path}. "
                "Download it from the Google Cloud Console."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(creds_path), SCOPES)
        creds = flow.run_local_server(port=0)
        logger.info("New credentials obtained via OAuth2 consent flow")

    # 3. Save token
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
    logger.debug("Token saved to %s", token_path)
    return creds


def _delegated_credentials(impersonator: str):
    """Application-default credentials acting as ``impersonator``."""
    creds, _project = google.auth.default(scopes=SCOPES)
    if not hasattr(creds, "with_subject"):
        raise CalendarError(
            "Application default credentials cannot impersonate "
            f"{impersonator}; a service account key is required."
        )
    logger.info("Using delegated credentials for %s", impersonator)
    return creds.with_subject(impersonator)


def get_calendar_service(
    impersonator: str | None = None, timeout: float | None = None
):
    """Authenticate and return a Google Calendar API v3 service object."""
    if impersonator:
        creds = _delegated_credentials(impersonator)
    else:
        creds = _user_credentials()

    http = google_auth_httplib2.AuthorizedHttp(
        creds, http=httplib2.Http(timeout=timeout)
    )
    service = build("calendar", "v3", http=http, cache_discovery=False)
    logger.info("Google Calendar service built successfully")
    return service


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    print("Running Google Calendar authorization flow...")
    svc = get_calendar_service()
    calendars = svc.calendarList().list(maxResults=10).execute()
    items = calendars.get("items", [])
    print(f"Auth successful! Found {len(items)} calendar(s).")
    for item in items:
        print(f"  - {item.get('summary', '(no title)')}: {item.get('id')}")
