"""Build record (compile_commands.json) accumulation and output.

The orchestrator appends one InvocationRecord per translation unit it
processes into a BuildRecordLog, and the log is written out once per build
in the JSON compilation database format understood by clangd and most
editors. The file is overwritten on every build.
"""

from __future__ import annotations

import json
import logging
import shlex
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

from unmake.builds.commands import COMPILE_ONLY_FLAG
from unmake.types import InvocationRecord

logger = logging.getLogger(__name__)


class BuildRecordLog:
    """Ordered accumulator of the compile invocations of one build."""

    def __init__(self) -> None:
        self._records: list[InvocationRecord] = []

    def append(self, record: InvocationRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> list[InvocationRecord]:
        return list(self._records)

    def __iter__(self) -> Iterator[InvocationRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


def extract_source(command: Sequence[str], src_dir: Path) -> str | None:
    """Find the source file named in a compile command.

    The token following the compile-only flag wins; otherwise the first
    token under src_dir is used.

    Args:
        command: Compile command tokens.
        src_dir: The configured source directory.

    Returns:
        The source token, or None if none could be found.
    """
    tokens = list(command)
    if COMPILE_ONLY_FLAG in tokens:
        index = tokens.index(COMPILE_ONLY_FLAG)
        if index + 1 < len(tokens):
            return tokens[index + 1]

    for token in tokens[1:]:
        if Path(token).parent == src_dir:
            return token
    return None


def generate_compile_commands(
    records: Sequence[InvocationRecord] | BuildRecordLog,
    directory: Path,
    src_dir: Path,
) -> list[dict[str, Any]]:
    """Turn invocation records into compilation database entries.

    Args:
        records: Records in discovery order.
        directory: Working directory the commands run in.
        src_dir: The configured source directory.

    Returns:
        List of {directory, command, file} dictionaries.
    """
    entries: list[dict[str, Any]] = []
    for record in records:
        file = extract_source(record.command, src_dir)
        if file is None:
            # Degraded entry; tooling still gets the command
            logger.warning(
                "Could not find a source file in command: %s",
                shlex.join(record.command),
            )
            file = str(record.source)

        entries.append(
            {
                "directory": str(directory),
                "command": shlex.join(record.command),
                "file": file,
            }
        )
    return entries


def write_compile_commands(
    records: Sequence[InvocationRecord] | BuildRecordLog,
    output_path: Path,
    src_dir: Path,
    directory: Path | None = None,
) -> Path | None:
    """Write the build record, replacing any previous one.

    A failed write is logged and reported as None; it never fails a build.

    Args:
        records: Records in discovery order.
        output_path: Output file path.
        src_dir: The configured source directory.
        directory: Working directory recorded per entry (default: cwd).

    Returns:
        Path to the written file, or None if it could not be written.
    """
    if directory is None:
        directory = Path.cwd()

    entries = generate_compile_commands(records, directory, src_dir)

    try:
        with output_path.open("w", encoding="utf-8") as f:
            json.dump(entries, f, indent=2)
            f.write("\n")
    except OSError as e:
        logger.error("Failed to write %s: %s", output_path, e)
        return None

    logger.info("Wrote %d compile command(s) to %s", len(entries), output_path)
    return output_path


__all__ = [
    "BuildRecordLog",
    "extract_source",
    "generate_compile_commands",
    "write_compile_commands",
]
