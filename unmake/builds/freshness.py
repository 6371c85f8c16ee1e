"""Staleness checks between a source and the artifact derived from it.

A derived artifact is stale when it is missing, or when its source was
modified strictly later than it. Equal timestamps count as up to date so
that filesystems with coarse clocks do not trigger endless rebuilds.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from unmake.errors import StatError

logger = logging.getLogger(__name__)


def _mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError as e:
        raise StatError(path, e.strerror or str(e)) from e


def is_stale(source_path: Path, derived_path: Path) -> bool:
    """Decide whether derived_path must be rebuilt from source_path.

    Args:
        source_path: The input file. Must exist.
        derived_path: The artifact built from it.

    Returns:
        True if derived_path is missing or older than source_path.

    Raises:
        StatError: If source_path cannot be stat'ed.
    """
    source_mtime = _mtime(source_path)
    try:
        derived_mtime = derived_path.stat().st_mtime
    except FileNotFoundError:
        return True
    except OSError as e:
        raise StatError(derived_path, e.strerror or str(e)) from e

    return source_mtime > derived_mtime


def any_stale(source_paths: Iterable[Path], derived_path: Path) -> bool:
    """Return True if derived_path is missing or older than any source."""
    if not derived_path.exists():
        return True
    for source in source_paths:
        if is_stale(source, derived_path):
            logger.debug("%s is newer than %s", source, derived_path)
            return True
    return False


__all__ = ["any_stale", "is_stale"]
