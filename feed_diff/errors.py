"""Error kinds raised by the feed_diff pipeline."""

from __future__ import annotations


class FeedDiffError(Exception):
    """Base error carrying the pipeline stage that failed."""

    stage = "run"

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ConfigError(FeedDiffError):
    """Invalid configuration or trust material."""

    stage = "config"


class NetworkError(FeedDiffError):
    """The remote feed could not be retrieved."""

    stage = "fetch"


class ParseError(FeedDiffError):
    """Feed content is not a recognisable feed."""

    stage = "parse"


class StorageError(FeedDiffError):
    """Reading or writing the local snapshot or report file failed."""

    stage = "persist"


class TimestampError(FeedDiffError):
    """A timestamp required for comparison is missing."""

    stage = "diff"
