"""Local snapshot storage for the last fetched feed."""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from typing import Optional

from .errors import StorageError

logger = logging.getLogger(__name__)


def load_snapshot(path: str) -> Optional[bytes]:
    """Return the stored snapshot bytes, or None when no snapshot exists yet."""
    location = Path(path)
    try:
        data = location.read_bytes()
    except FileNotFoundError:
        logger.info("No local snapshot at %s; treating it as empty", location)
        return None
    except OSError as exc:
        raise StorageError(
            f"Unable to read local snapshot {location}: {exc}", stage="load"
        ) from exc

    logger.info("Loaded %d bytes of local snapshot from %s", len(data), location)
    return data


def save_snapshot(path: str, data: bytes) -> None:
    """Replace the stored snapshot with ``data``.

    The bytes are written to a temporary sibling file first and then moved over
    the target, so an interrupted run leaves the previous snapshot intact.
    """
    location = Path(path)
    tmp_path = location.with_name(location.name + ".tmp")
    try:
        if location.parent and not location.parent.exists():
            location.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_bytes(data)
        os.replace(tmp_path, location)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp_path.unlink(missing_ok=True)
        raise StorageError(
            f"Unable to write local snapshot {location}: {exc}", stage="persist"
        ) from exc

    logger.info("Saved %d bytes of feed snapshot to %s", len(data), location)
