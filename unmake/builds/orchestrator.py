"""Build orchestration.

This module provides the high-level build API:
- execute(): runs the optional states of one invocation in order
  (clean, directory setup, init, build, link and copy, run)
- build(): incremental compile of every stale unit, then link
- Helpers for each state, usable on their own

Every step is sequential and blocking. A failed compile or link raises
immediately and leaves already-built objects in place, so the next run's
staleness check picks up where this one stopped.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from unmake.builds.commands import (
    compose_clean_command,
    compose_compile_command,
    compose_init_command,
    compose_link_command,
    compose_run_command,
)
from unmake.builds.freshness import any_stale, is_stale
from unmake.builds.libraries import stage_libraries
from unmake.builds.records import BuildRecordLog, write_compile_commands
from unmake.builds.runner import run_command
from unmake.errors import CompileError, ConfigurationError, LinkError
from unmake.types import BuildReport, BuildRequest, InvocationRecord, TranslationUnit

if TYPE_CHECKING:
    from unmake.config import Settings

logger = logging.getLogger(__name__)


def clean(settings: Settings) -> int:
    """Remove the object and binary directories.

    A failing clean command is logged but not fatal; directory setup runs
    right after and recreates whatever is missing.

    Returns:
        Exit code of the clean command.
    """
    exit_code = run_command(compose_clean_command(settings), label="Cleaning")
    if exit_code != 0:
        logger.warning("Clean command exited with %d", exit_code)
    return exit_code


def ensure_directories(settings: Settings) -> None:
    """Create every directory the build needs.

    Raises:
        ConfigurationError: If a directory cannot be created.
    """
    for directory in settings.directories:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Failed to create directory {directory}: {e}"
            ) from e


def run_init(settings: Settings) -> None:
    """Run the configured init command, if any.

    Raises:
        ConfigurationError: If the init command fails.
    """
    cmd = compose_init_command(settings)
    if not cmd:
        logger.info("No additional init specified")
        return

    exit_code = run_command(cmd, label="Additional init")
    if exit_code != 0:
        raise ConfigurationError(f"Init command failed with exit code {exit_code}")


def discover_units(settings: Settings) -> list[TranslationUnit]:
    """Enumerate translation units in the source directory.

    Only regular files with the configured extension count. Units are
    sorted by file name so link order does not depend on the filesystem.

    Raises:
        ConfigurationError: If the source directory cannot be read.
    """
    try:
        with os.scandir(settings.src_dir) as it:
            names = sorted(
                entry.name
                for entry in it
                if entry.is_file(follow_symlinks=False)
                and os.path.splitext(entry.name)[1] == settings.src_ext
            )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to open source directory {settings.src_dir}: {e}"
        ) from e

    return [
        TranslationUnit.from_source(settings.src_dir / name, settings.obj_dir)
        for name in names
    ]


def compile_units(
    settings: Settings,
    units: list[TranslationUnit],
    records: BuildRecordLog | None = None,
) -> tuple[list[TranslationUnit], BuildRecordLog]:
    """Compile every stale unit, in order.

    Up-to-date units are skipped but still recorded, with the command
    that would rebuild them, so the build record always covers the
    whole project.

    Args:
        settings: Build configuration.
        units: Units in link order.
        records: Accumulator to append to; a new one is created if omitted.

    Returns:
        Tuple of (units compiled this pass, record accumulator).

    Raises:
        CompileError: On the first unit whose compile fails.
        StatError: If a source file cannot be stat'ed.
    """
    if records is None:
        records = BuildRecordLog()

    compiled: list[TranslationUnit] = []
    for unit in units:
        cmd = compose_compile_command(settings, unit)
        stale = is_stale(unit.source, unit.object_path)

        if stale:
            exit_code = run_command(cmd, label="Compiling")
            if exit_code != 0:
                raise CompileError(unit, exit_code)
            compiled.append(unit)
        else:
            logger.info("Skipping (up-to-date): %s", unit.source)

        records.append(
            InvocationRecord(command=tuple(cmd), source=unit.source, compiled=stale)
        )

    return compiled, records


def link(
    settings: Settings,
    units: list[TranslationUnit],
    force: bool = False,
) -> bool:
    """Link every object into the target binary when needed.

    The link is skipped when the binary exists, is newer than every
    object, and force is False.

    Returns:
        True if the linker ran.

    Raises:
        LinkError: If the linker exits non-zero.
    """
    target = settings.target_path
    if not force and not any_stale((u.object_path for u in units), target):
        logger.info("Skipping link (up-to-date): %s", target)
        return False

    exit_code = run_command(compose_link_command(settings, units), label="Linking")
    if exit_code != 0:
        raise LinkError(target, exit_code)
    return True


def build(settings: Settings, records: BuildRecordLog | None = None) -> BuildReport:
    """Incrementally compile, record, link and stage libraries.

    Args:
        settings: Build configuration.
        records: Optional accumulator for the build record.

    Returns:
        BuildReport describing what was done.

    Raises:
        ConfigurationError: If there is nothing to build.
        CompileError: If a unit fails to compile.
        LinkError: If linking fails.
    """
    logger.info("Target binary: %s", settings.target)
    units = discover_units(settings)
    if not units:
        raise ConfigurationError(
            f"No {settings.src_ext} files found in {settings.src_dir}"
        )

    compiled, records = compile_units(settings, units, records)
    report = BuildReport(target=settings.target_path, units=units, compiled=compiled)

    if settings.compile_commands:
        report.records_path = write_compile_commands(
            records,
            settings.compile_commands_path,
            src_dir=settings.src_dir,
        )

    report.linked = link(settings, units, force=bool(compiled))

    report.copy = stage_libraries(settings)
    if report.copy.degraded:
        logger.warning("Some or all library files could not be copied")

    logger.info("Success: Executable created at %s", report.target)
    return report


def run_binary(settings: Settings) -> int:
    """Run the target binary, streaming its output.

    Returns:
        The binary's exit code.
    """
    exit_code = run_command(compose_run_command(settings), label="Executing")
    if exit_code != 0:
        logger.error(
            "Execution failed for %s (exit code %d)", settings.target_path, exit_code
        )
    return exit_code


def execute(settings: Settings, request: BuildRequest) -> BuildReport | None:
    """Run the selected states of one invocation in order.

    Args:
        settings: Build configuration.
        request: Which optional states to run.

    Returns:
        The BuildReport if a build ran, else None. When the binary was run,
        its exit code is in report.run_exit_code.
    """
    if request.clean:
        clean(settings)

    ensure_directories(settings)

    if request.init:
        run_init(settings)

    if not request.build:
        return None

    report = build(settings)

    if request.run:
        report.run_exit_code = run_binary(settings)

    return report


__all__ = [
    "build",
    "clean",
    "compile_units",
    "discover_units",
    "ensure_directories",
    "execute",
    "link",
    "run_binary",
    "run_init",
]
