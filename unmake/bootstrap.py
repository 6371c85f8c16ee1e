"""Self-rebuild and relaunch of the orchestrator binary.

Before any flag is parsed, the orchestrator compares its own source file
with the executable that is currently running. When the source is newer,
the executable is rebuilt in place and the process image is replaced with
the new one, keeping the original argument vector.

The relaunched process carries RELAUNCH_ENV in its environment. If it
still sees a stale executable (clock skew between the source and the
fresh binary), it warns and carries on instead of rebuilding again, so a
single invocation rebuilds at most once.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from collections.abc import MutableMapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from unmake.builds.commands import compose_self_rebuild_command
from unmake.builds.freshness import is_stale
from unmake.builds.runner import run_command
from unmake.errors import RelaunchError

if TYPE_CHECKING:
    from unmake.config import Settings

logger = logging.getLogger(__name__)

RELAUNCH_ENV = "UNMAKE_RELAUNCHED"


def resolve_self_binary(settings: Settings, argv: Sequence[str]) -> str:
    """Locate the executable to rebuild.

    Uses the self_binary setting, else argv[0]. A bare program name is
    looked up on PATH.
    """
    binary = settings.self_binary or argv[0]
    if os.sep not in binary and not Path(binary).exists():
        found = shutil.which(binary)
        if found:
            binary = found
    return binary


def supports_exec() -> bool:
    """Whether os.execve replaces the process image on this platform."""
    return hasattr(os, "execve") and os.name != "nt"


def relaunch(binary: str, argv: Sequence[str], env: MutableMapping[str, str]) -> int:
    """Transfer control to the rebuilt binary.

    Replaces the current process where the platform allows it. Elsewhere
    the binary is spawned as a child and its exit code returned for the
    caller to exit with.

    Raises:
        RelaunchError: If the binary cannot be started.
    """
    logger.info("Relaunching: %s", shlex.join(argv))

    if supports_exec():
        try:
            os.execve(binary, list(argv), dict(env))
        except OSError as e:
            raise RelaunchError(f"Relaunch failed: {e}") from e
        raise RelaunchError("Relaunch failed: process image was not replaced")

    try:
        result = subprocess.run([binary, *argv[1:]], env=dict(env), check=False)
    except OSError as e:
        raise RelaunchError(f"Relaunch failed: {e}") from e
    return result.returncode


def ensure_fresh(
    settings: Settings,
    argv: Sequence[str],
    environ: MutableMapping[str, str] | None = None,
) -> int | None:
    """Rebuild and relaunch the orchestrator if its source changed.

    Args:
        settings: Build configuration; an empty self_source disables this.
        argv: The original, unmodified argument vector.
        environ: Process environment (default: os.environ). The relaunch
            marker is removed from it so child processes never see it.

    Returns:
        None to continue in this process, or the exit code of a relaunched
        child on platforms without process replacement.

    Raises:
        RelaunchError: If the rebuild or the relaunch fails.
        StatError: If the self source cannot be stat'ed.
    """
    if not settings.self_source:
        return None

    if environ is None:
        environ = os.environ
    relaunched = environ.pop(RELAUNCH_ENV, None) is not None

    binary = resolve_self_binary(settings, argv)
    if not is_stale(Path(settings.self_source), Path(binary)):
        return None

    if relaunched:
        logger.warning(
            "%s is still older than %s after a rebuild; check the system clock",
            binary,
            settings.self_source,
        )
        return None

    exit_code = run_command(
        compose_self_rebuild_command(settings, binary), label="Rebuilding"
    )
    if exit_code != 0:
        raise RelaunchError(f"Rebuild failed with exit code {exit_code}")

    env = dict(environ)
    env[RELAUNCH_ENV] = "1"
    return relaunch(binary, argv, env)


__all__ = [
    "RELAUNCH_ENV",
    "ensure_fresh",
    "relaunch",
    "resolve_self_binary",
    "supports_exec",
]
