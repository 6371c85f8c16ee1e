"""Process-wide logging setup for the CLI.

Library modules only create loggers; the CLI installs a single Rich
handler on stderr so progress lines never mix with a run binary's stdout.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(message)s"


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Route all log records to a Rich handler on stderr.

    Args:
        level: Logging level name.
        console: Console to render to (default: a stderr console).
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )


__all__ = ["configure_logging"]
