import textwrap
from datetime import datetime, timezone
from typing import Optional

import pytest

from feed_diff.models import FeedEntry, FeedSnapshot


def build_rss(items) -> bytes:
    """Return RSS 2.0 bytes for ``(title, link, pub_date)`` tuples."""
    rendered = []
    for title, link, pub_date in items:
        date_line = f"<pubDate>{pub_date}</pubDate>" if pub_date else ""
        rendered.append(
            f"<item><title>{title}</title><link>{link}</link>{date_line}</item>"
        )
    return textwrap.dedent(
        """\
        <?xml version="1.0" encoding="utf-8"?>
        <rss version="2.0">
          <channel>
            <title>Open Data</title>
            <link>https://opendata.example.com</link>
            <description>Open Data updates</description>
            {items}
          </channel>
        </rss>
        """
    ).format(items="\n".join(rendered)).encode("utf-8")


def entry(title: str, date: Optional[str] = None, link: Optional[str] = None) -> FeedEntry:
    published = None
    if date is not None:
        published = datetime.fromisoformat(date.replace("Z", "+00:00"))
    return FeedEntry(
        title=title,
        link=link or f"https://opendata.example.com/{title}.csv",
        published=published,
    )


def snapshot(*entries: FeedEntry) -> FeedSnapshot:
    return FeedSnapshot(entries=list(entries))


@pytest.fixture
def rss_bytes():
    return build_rss
