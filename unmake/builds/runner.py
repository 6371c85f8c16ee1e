"""Execution of external toolchain commands.

Commands run one at a time through subprocess, never through a shell.
Output streams straight to the inherited stdout/stderr, and every call
blocks until the program exits. There is no timeout.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence

from unmake.errors import CommandExecutionError

logger = logging.getLogger(__name__)


def run_command(cmd: Sequence[str], label: str = "Executing") -> int:
    """Run a command to completion and return its exit code.

    Args:
        cmd: Command tokens; cmd[0] is the program.
        label: Verb used in the progress log line.

    Returns:
        The process exit code.

    Raises:
        CommandExecutionError: If the program cannot be started.
    """
    cmd_str = shlex.join(cmd)
    logger.info("%s: %s", label, cmd_str)

    try:
        result = subprocess.run(list(cmd), check=False)
    except OSError as e:
        raise CommandExecutionError(f"Failed to execute {cmd[0]!r}: {e}") from e

    if result.returncode != 0:
        logger.debug("Command exited with %d: %s", result.returncode, cmd_str)
    return result.returncode


__all__ = ["run_command"]
