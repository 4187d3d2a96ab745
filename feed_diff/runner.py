"""High-level orchestration for a single feed_diff run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import requests

from .diffing import diff_snapshots
from .errors import StorageError
from .feeds import parse_feed
from .models import ChangeRecord, FeedSnapshot, Report, ReportMetadata
from .renderers import NO_CHANGES_MESSAGE, build_report, filter_changes, render_report
from .snapshots import load_snapshot, save_snapshot
from .transport import build_session, fetch_feed

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Runtime options for executing the application."""

    url: str
    snapshot_path: str
    ca_cert_path: Optional[str] = None
    timeout: float = 30.0
    missing_dates: str = "changed"
    output_format: str = "json"
    output_file: Optional[str] = None
    link_suffixes: List[str] = field(default_factory=list)
    metadata: ReportMetadata = field(default_factory=ReportMetadata)


@dataclass
class RunResult:
    """Returned data after executing the app."""

    output_text: str
    report: Optional[Report]
    changes: List[ChangeRecord]

    @property
    def has_changes(self) -> bool:
        return self.report is not None


def _load_previous(path: str) -> FeedSnapshot:
    data = load_snapshot(path)
    if data is None:
        return FeedSnapshot()
    return parse_feed(data)


def _write_output(path: str, text: str) -> None:
    location = Path(path)
    try:
        if location.parent and not location.parent.exists():
            location.parent.mkdir(parents=True, exist_ok=True)
        location.write_text(text + "\n", encoding="utf-8")
    except OSError as exc:
        raise StorageError(
            f"Unable to write report to {location}: {exc}", stage="output"
        ) from exc
    logger.info("Wrote report to %s", location)


def execute(
    config: RunConfig,
    session: Optional[requests.Session] = None,
    now: Optional[datetime] = None,
) -> RunResult:
    """Run the application logic and return the result payload."""
    previous = _load_previous(config.snapshot_path)
    logger.info("Previous snapshot holds %d entries", len(previous))

    if session is None:
        session = build_session(config.ca_cert_path)
    remote_bytes = fetch_feed(session, config.url, timeout=config.timeout)

    # The snapshot is replaced before diffing so a failure further down never
    # causes the same changes to be reported again on the next run.
    save_snapshot(config.snapshot_path, remote_bytes)

    current = parse_feed(remote_bytes)
    changes = diff_snapshots(previous, current, missing_dates=config.missing_dates)
    changes = filter_changes(changes, config.link_suffixes)

    report = None
    if changes:
        generated_at = now or datetime.now(timezone.utc)
        report = build_report(changes, config.metadata, generated_at)
        output_text = render_report(report, config.output_format, feed_id=config.url)
    else:
        logger.info("No changes found")
        output_text = NO_CHANGES_MESSAGE

    if config.output_file:
        _write_output(config.output_file, output_text)

    return RunResult(output_text=output_text, report=report, changes=changes)
