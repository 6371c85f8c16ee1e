"""Copying runtime libraries beside the linked binary.

Libraries in the library directory are copied into <bin>/<lib>, the
directory the binary's runtime search path points at. Only missing or
older copies are refreshed. Copying is best effort: failures are
collected and reported, never raised.
"""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from unmake.builds.commands import plan_library_copy
from unmake.errors import StatError
from unmake.types import CopyResult

if TYPE_CHECKING:
    from unmake.config import Settings

logger = logging.getLogger(__name__)


def stage_libraries(settings: Settings) -> CopyResult:
    """Copy libraries into the binary's library directory.

    Args:
        settings: Build configuration.

    Returns:
        CopyResult listing copied files and any failures.
    """
    result = CopyResult()

    if not settings.lib_dir.is_dir():
        result.failures.append(f"Library directory not found: {settings.lib_dir}")
        logger.warning(result.failures[-1])
        return result

    try:
        plan = plan_library_copy(settings)
    except (OSError, StatError) as e:
        result.failures.append(f"Cannot scan {settings.lib_dir}: {e}")
        logger.warning(result.failures[-1])
        return result

    if not plan:
        logger.info("Nothing to copy")
        return result

    logger.info(
        "Copying libraries from %s to %s", settings.lib_dir, settings.bin_lib_dir
    )
    for source, dest in plan:
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, dest)
        except OSError as e:
            result.failures.append(f"Failed to copy {source} -> {dest}: {e}")
            logger.warning(result.failures[-1])
            continue
        result.copied.append(dest)
        logger.debug("Copied %s -> %s", source, dest)

    return result


__all__ = ["stage_libraries"]
