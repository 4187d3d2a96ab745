"""Shared data models for feed_diff."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as an RFC 3339 UTC string truncated to seconds."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(RFC3339_FORMAT)


@dataclass
class FeedEntry:
    """Simplified feed item used throughout the app."""

    title: str
    link: str
    published: Optional[datetime] = None


@dataclass
class FeedSnapshot:
    """Ordered entries of a feed at one point in time."""

    entries: List[FeedEntry] = field(default_factory=list)
    version: str = ""

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class ChangeRecord:
    """One new or changed entry reported to the user."""

    name: str
    link: str
    date: Optional[str]

    @classmethod
    def from_entry(cls, entry: FeedEntry) -> "ChangeRecord":
        return cls(
            name=entry.title,
            link=entry.link,
            date=format_timestamp(entry.published),
        )

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"name": self.name, "link": self.link, "date": self.date}


@dataclass
class ReportMetadata:
    """Fixed descriptive fields attached to every report."""

    title_template: str = "Open Data updates for {date:%Y-%m-%d}"
    author: str = "feed-diff"
    categories: List[str] = field(default_factory=list)


@dataclass
class Report:
    """Structured summary of the changes found in one run."""

    title: str
    date: str
    author: str
    categories: List[str]
    changes: List[ChangeRecord]

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "date": self.date,
            "author": self.author,
            "categories": list(self.categories),
            "changes": [change.to_dict() for change in self.changes],
        }
