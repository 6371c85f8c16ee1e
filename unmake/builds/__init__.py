"""Incremental build module.

This module handles:
- Staleness checks between sources and derived artifacts
- Toolchain command composition
- Compiling, linking and library staging
- The compile_commands.json build record
"""

from unmake.builds.orchestrator import build, execute
from unmake.builds.records import BuildRecordLog

__all__ = ["BuildRecordLog", "build", "execute"]
