"""Error definitions for unmake.

Every fatal condition of a run is an UnmakeError subclass carrying a
stable code string. The CLI maps any of them to exit code 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from unmake.types import Outcome

if TYPE_CHECKING:
    from unmake.types import TranslationUnit

# Error code constants
CONFIGURATION_ERROR = "configuration_error"
STAT_ERROR = "stat_error"
COMPILE_FAILED = "compile_failed"
LINK_FAILED = "link_failed"
RELAUNCH_FAILED = "relaunch_failed"
EXECUTION_ERROR = "execution_error"


class UnmakeError(Exception):
    """Base class for fatal unmake errors."""

    def __init__(self, message: str, code: str = CONFIGURATION_ERROR) -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(UnmakeError):
    """Raised for bad settings or an unusable project layout."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=CONFIGURATION_ERROR)


class StatError(UnmakeError):
    """Raised when a required file cannot be stat'ed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot stat {path}: {reason}", code=STAT_ERROR)
        self.path = path


class CommandExecutionError(UnmakeError):
    """Raised when an external program cannot be launched at all."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=EXECUTION_ERROR)


class CompileError(UnmakeError):
    """Raised when the compiler exits non-zero for a translation unit."""

    def __init__(self, unit: TranslationUnit, exit_code: int) -> None:
        super().__init__(
            f"Compilation failed for {unit.source} (exit code {exit_code})",
            code=COMPILE_FAILED,
        )
        self.unit = unit
        self.exit_code = exit_code


class LinkError(UnmakeError):
    """Raised when the linker exits non-zero."""

    def __init__(self, target: Path, exit_code: int) -> None:
        super().__init__(
            f"Linking failed for {target} (exit code {exit_code})",
            code=LINK_FAILED,
        )
        self.target = target
        self.exit_code = exit_code


class RelaunchError(UnmakeError):
    """Raised when the self-rebuild or the process replacement fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=RELAUNCH_FAILED)


def outcome_for(error: UnmakeError) -> Outcome:
    """Map a fatal error to the terminal outcome of the run."""
    if isinstance(error, CompileError):
        return Outcome.COMPILE_FAILURE
    if isinstance(error, LinkError):
        return Outcome.LINK_FAILURE
    if isinstance(error, RelaunchError):
        return Outcome.RELAUNCH_FAILURE
    return Outcome.CONFIGURATION_ERROR


__all__ = [
    "COMPILE_FAILED",
    "CONFIGURATION_ERROR",
    "EXECUTION_ERROR",
    "LINK_FAILED",
    "RELAUNCH_FAILED",
    "STAT_ERROR",
    "CommandExecutionError",
    "CompileError",
    "ConfigurationError",
    "LinkError",
    "RelaunchError",
    "StatError",
    "UnmakeError",
    "outcome_for",
]
