"""Feed parsing helpers."""

from __future__ import annotations

import calendar
import io
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

import feedparser

from .errors import ParseError
from .models import FeedEntry, FeedSnapshot

logger = logging.getLogger(__name__)


def to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert feedparser UTC timestamps to timezone-aware datetimes."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        logger.debug("Discarding unusable timestamp %r", value)
        return None


def parse_feed(data: bytes) -> FeedSnapshot:
    """Parse raw feed bytes into an ordered snapshot."""
    if not data or not data.strip():
        logger.debug("Empty feed content; returning empty snapshot")
        return FeedSnapshot()

    # A file object keeps feedparser from treating the bytes as a path or URL.
    parsed = feedparser.parse(io.BytesIO(data))
    version = parsed.get("version", "") or ""
    if not version:
        reason = parsed.get("bozo_exception") or "content is not a recognised feed"
        raise ParseError(f"Unable to parse feed: {reason}")
    if parsed.get("bozo"):
        logger.warning(
            "Feed parsed with problems: %s", parsed.get("bozo_exception")
        )

    entries: List[FeedEntry] = []
    for entry in parsed.entries:
        title = entry.get("title")
        if not title:
            logger.debug("Skipping entry without title: %s", entry.get("link"))
            continue

        published = None
        for attr in ("published_parsed", "updated_parsed", "created_parsed"):
            published = entry.get(attr)
            if published:
                break

        entries.append(
            FeedEntry(
                title=title,
                link=entry.get("link", "") or "",
                published=to_datetime(published),
            )
        )

    logger.info("Parsed %d entries from %s feed", len(entries), version or "unknown")
    return FeedSnapshot(entries=entries, version=version)
