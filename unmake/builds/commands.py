"""Command composition for the external toolchain.

This module handles:
- Composing compile commands for a single translation unit
- Composing the link command over every object
- Composing clean, run, init and self-rebuild commands
- Planning which runtime libraries need copying beside the binary

Every command is a list of discrete argument tokens meant for subprocess
without a shell. Token order is fixed so build records are reproducible.
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from unmake.builds.freshness import is_stale
from unmake.errors import ConfigurationError

if TYPE_CHECKING:
    from unmake.config import Settings
    from unmake.types import TranslationUnit

logger = logging.getLogger(__name__)

COMPILE_ONLY_FLAG = "-c"
OUTPUT_FLAG = "-o"


def rpath_flag(settings: Settings) -> str:
    """Runtime search path pointing at the library directory beside the binary.

    $ORIGIN is expanded by the dynamic loader, not by a shell.
    """
    return f"-Wl,-rpath,$ORIGIN/{settings.bin_lib_dir.name}"


def compose_compile_command(settings: Settings, unit: TranslationUnit) -> list[str]:
    """Compose the command that compiles one unit into its object file.

    Args:
        settings: Build configuration.
        unit: The translation unit to compile.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [settings.compiler]
    cmd.extend(settings.cflags)
    cmd.append(f"-I{settings.inc_dir}")
    cmd.extend(settings.include_flags)
    cmd.extend(
        [COMPILE_ONLY_FLAG, str(unit.source), OUTPUT_FLAG, str(unit.object_path)]
    )
    return cmd


def compose_link_command(
    settings: Settings,
    units: Sequence[TranslationUnit],
) -> list[str]:
    """Compose the command that links every object into the target binary.

    Args:
        settings: Build configuration.
        units: Units in link order.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [settings.linker]
    cmd.extend(str(u.object_path) for u in units)
    cmd.extend([OUTPUT_FLAG, str(settings.target_path)])
    cmd.extend(settings.lib_flags)
    cmd.append(f"-L{settings.lib_dir}")
    cmd.extend(settings.ld_flags)
    if settings.rpath:
        cmd.append(rpath_flag(settings))
    return cmd


def compose_clean_command(settings: Settings) -> list[str]:
    """Compose the removal command for the object and binary directories."""
    cmd = list(settings.clean_command)
    cmd.extend(str(d) for d in settings.cleaned_directories)
    return cmd


def executable_path(path: Path) -> str:
    """Spell a binary path so it is never looked up on PATH."""
    if path.is_absolute():
        return str(path)
    return os.path.join(os.curdir, path)


def compose_run_command(settings: Settings) -> list[str]:
    """Wrap the target binary with the configured run prefix and suffix."""
    return [
        *settings.run_prefix,
        executable_path(settings.target_path),
        *settings.run_suffix,
    ]


def compose_init_command(settings: Settings) -> list[str]:
    """Split the configured init command into tokens.

    Returns:
        The tokens, or an empty list when no init command is configured.

    Raises:
        ConfigurationError: If the command string cannot be tokenized.
    """
    try:
        return shlex.split(settings.init_command)
    except ValueError as e:
        raise ConfigurationError(
            f"Cannot parse init command {settings.init_command!r}: {e}"
        ) from e


def compose_self_rebuild_command(settings: Settings, binary: str) -> list[str]:
    """Compose the command that rebuilds the orchestrator over its own binary."""
    return [settings.self_compiler, settings.self_source, OUTPUT_FLAG, binary]


def plan_library_copy(settings: Settings) -> list[tuple[Path, Path]]:
    """List the libraries whose copy beside the binary is missing or older.

    Only regular files directly inside the library directory are considered.

    Args:
        settings: Build configuration.

    Returns:
        (source, destination) pairs, sorted by file name.
    """
    if not settings.lib_dir.is_dir():
        return []

    plan: list[tuple[Path, Path]] = []
    for path in sorted(settings.lib_dir.iterdir()):
        if not path.is_file():
            continue
        dest = settings.bin_lib_dir / path.name
        if is_stale(path, dest):
            plan.append((path, dest))
        else:
            logger.debug("Library up to date: %s", dest)
    return plan


__all__ = [
    "COMPILE_ONLY_FLAG",
    "OUTPUT_FLAG",
    "compose_clean_command",
    "compose_compile_command",
    "compose_init_command",
    "compose_link_command",
    "compose_run_command",
    "compose_self_rebuild_command",
    "executable_path",
    "plan_library_copy",
    "rpath_flag",
]
