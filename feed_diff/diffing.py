"""Compare two feed snapshots and report new or changed entries.

Entries are identified by title alone. When a title appears more than once
in the previous snapshot, the last occurrence wins the lookup slot.
Timestamps are compared as whole epoch seconds so representation details
(sub-second precision, UTC offsets) never register as a change.

Entries that lack a timestamp on either side cannot be compared; the
``missing_dates`` policy decides what happens to them:

``"changed"``
    report the entry (default).
``"unchanged"``
    suppress the entry as long as its title is already known.
``"error"``
    raise :class:`TimestampError`, failing the run.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .errors import TimestampError
from .models import ChangeRecord, FeedEntry, FeedSnapshot

logger = logging.getLogger(__name__)

MISSING_DATE_POLICIES = ("changed", "unchanged", "error")


def canonical_timestamp(value: Optional[datetime]) -> Optional[int]:
    """Return whole epoch seconds for ``value``; naive datetimes are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.replace(microsecond=0).timestamp())


def build_lookup(snapshot: FeedSnapshot) -> Dict[str, Optional[int]]:
    """Map each title to its canonical timestamp (last write wins)."""
    lookup: Dict[str, Optional[int]] = {}
    for entry in snapshot.entries:
        if entry.title in lookup:
            logger.debug("Duplicate title in previous snapshot: %s", entry.title)
        lookup[entry.title] = canonical_timestamp(entry.published)
    return lookup


def _is_changed(
    entry: FeedEntry, previous: Optional[int], missing_dates: str
) -> bool:
    current = canonical_timestamp(entry.published)
    if previous is not None and current is not None:
        return current != previous

    if missing_dates == "error":
        side = "current" if current is None else "previous"
        raise TimestampError(
            f"Missing publish date in {side} snapshot for entry '{entry.title}'"
        )
    return missing_dates == "changed"


def diff_snapshots(
    previous: FeedSnapshot,
    current: FeedSnapshot,
    missing_dates: str = "changed",
) -> List[ChangeRecord]:
    """Return change records for new or changed entries, in ``current`` order."""
    if missing_dates not in MISSING_DATE_POLICIES:
        raise ValueError(f"Unsupported missing-dates policy: {missing_dates}")

    lookup = build_lookup(previous)
    changes: List[ChangeRecord] = []

    for entry in current.entries:
        if entry.title not in lookup:
            logger.debug("New entry: %s", entry.title)
            changes.append(ChangeRecord.from_entry(entry))
            continue

        if _is_changed(entry, lookup[entry.title], missing_dates):
            logger.debug("Changed entry: %s", entry.title)
            changes.append(ChangeRecord.from_entry(entry))

    logger.info(
        "Found %d new or changed entries (%d previous, %d current)",
        len(changes),
        len(previous.entries),
        len(current.entries),
    )
    return changes
