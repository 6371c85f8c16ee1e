"""Shared type definitions for unmake.

This module contains the enums and dataclasses passed between the
orchestrator, the command synthesizer and the record emitter, kept here to
avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

OBJECT_SUFFIX = ".o"


class Outcome(str, Enum):
    """Terminal result of a run."""

    SUCCESS = "success"
    COMPILE_FAILURE = "compile_failure"
    LINK_FAILURE = "link_failure"
    RELAUNCH_FAILURE = "relaunch_failure"
    CONFIGURATION_ERROR = "configuration_error"


@dataclass(frozen=True)
class TranslationUnit:
    """One source file and the object file it compiles to."""

    source: Path
    object_path: Path

    @classmethod
    def from_source(cls, source: Path, obj_dir: Path) -> "TranslationUnit":
        """Derive the unit for a source path, placing its object in obj_dir."""
        return cls(source=source, object_path=obj_dir / f"{source.stem}{OBJECT_SUFFIX}")

    @property
    def base_name(self) -> str:
        """Source file name without its extension."""
        return self.source.stem


@dataclass(frozen=True)
class InvocationRecord:
    """A compile command and the source file it targets."""

    command: tuple[str, ...]
    source: Path
    compiled: bool = True


@dataclass(frozen=True)
class BuildRequest:
    """Which optional states of a run execute.

    Attributes:
        clean: Remove the object and binary directories first.
        init: Run the configured init command after creating directories.
        build: Compile and link.
        run: Execute the binary after a successful build.
    """

    clean: bool = False
    init: bool = False
    build: bool = True
    run: bool = False


@dataclass
class CopyResult:
    """Result of staging runtime libraries beside the binary."""

    copied: list[Path] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        """True when at least one library could not be copied."""
        return bool(self.failures)


@dataclass
class BuildReport:
    """Summary of one build pass.

    Attributes:
        target: Path of the linked binary.
        units: Every translation unit discovered, in link order.
        compiled: Units recompiled during this pass.
        linked: Whether the link step ran.
        copy: Library staging result, if the copy step ran.
        records_path: Where the build record was written, if it was.
        run_exit_code: Exit code of the binary when it was run.
    """

    target: Path
    units: list[TranslationUnit] = field(default_factory=list)
    compiled: list[TranslationUnit] = field(default_factory=list)
    linked: bool = False
    copy: CopyResult | None = None
    records_path: Path | None = None
    run_exit_code: int | None = None

    @property
    def skipped(self) -> list[TranslationUnit]:
        """Units found up to date."""
        return [u for u in self.units if u not in self.compiled]


__all__ = [
    "OBJECT_SUFFIX",
    "BuildReport",
    "BuildRequest",
    "CopyResult",
    "InvocationRecord",
    "Outcome",
    "TranslationUnit",
]
