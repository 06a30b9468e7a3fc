"""Feed source — reads the raw feed from a local path or an http(s) URL."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from icalsync.ports.feed_port import FeedSourceError

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 60


def is_url(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


def read_feed(location: str, timeout: float = _TIMEOUT_SECONDS) -> bytes:
    """Return the feed bytes from ``location``.

    Raises:
        FeedSourceError: the file cannot be read or the download failed.
    """
    if is_url(location):
        try:
            with httpx.Client(timeout=timeout, follow_redirects=True) as client:
                resp = client.get(location)
                resp.raise_for_status()
                data = resp.content
        except httpx.HTTPError as exc:
            logger.error("Cannot download feed %s: %s", location, exc)
            raise FeedSourceError(f"Cannot open {location}: {exc}") from exc
        logger.info("Downloaded %d byte(s) from %s", len(data), location)
        return data

    try:
        data = Path(location).expanduser().read_bytes()
    except OSError as exc:
        logger.error("Cannot read feed %s: %s", location, exc)
        raise FeedSourceError(f"Cannot open {location}: {exc}") from exc
    logger.info("Read %d byte(s) from %s", len(data), location)
    return data
