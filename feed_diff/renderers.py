"""Report building and rendering helpers."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Iterable, List, Sequence

from .errors import ConfigError
from .models import ChangeRecord, Report, ReportMetadata, format_timestamp
from .templating import get_environment

logger = logging.getLogger(__name__)

NO_CHANGES_MESSAGE = "no changes found"
OUTPUT_FORMATS = ("json", "atom", "text")


def filter_changes(
    changes: Iterable[ChangeRecord], link_suffixes: Sequence[str] = ()
) -> List[ChangeRecord]:
    """Keep changes whose link ends with one of ``link_suffixes``."""
    changes = list(changes)
    if not link_suffixes:
        return changes

    suffixes = tuple(suffix.lower() for suffix in link_suffixes)
    kept = [change for change in changes if change.link.lower().endswith(suffixes)]
    logger.info(
        "Link filter %s kept %d of %d changes", ", ".join(suffixes), len(kept), len(changes)
    )
    return kept


def build_report(
    changes: Sequence[ChangeRecord],
    metadata: ReportMetadata,
    generated_at: datetime,
) -> Report:
    """Assemble the structured report for a set of changes."""
    try:
        title = metadata.title_template.format(date=generated_at, count=len(changes))
    except (AttributeError, KeyError, IndexError, ValueError) as exc:
        raise ConfigError(
            f"Invalid report title template {metadata.title_template!r}: {exc}"
        ) from exc

    return Report(
        title=title,
        date=format_timestamp(generated_at),
        author=metadata.author,
        categories=list(metadata.categories),
        changes=list(changes),
    )


def render_report(report: Report, fmt: str = "json", feed_id: str = "") -> str:
    """Serialise the report as JSON, Atom XML or plain text."""
    if fmt == "json":
        return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
    if fmt == "atom":
        template = get_environment().get_template("report.atom.xml.j2")
        return template.render(report=report, feed_id=feed_id or report.title)
    if fmt == "text":
        template = get_environment().get_template("report.txt.j2")
        return template.render(report=report)
    raise ConfigError(f"Unsupported output format: {fmt}")
