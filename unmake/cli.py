"""Thin CLI wrapper for unmake.

This module provides the command-line interface using Typer, keeping the
single-dash flags of the original tool (-clean, -run, ...). All build
logic is delegated to unmake.builds and unmake.bootstrap.
"""

import logging
import sys
from typing import Annotated

import click
import typer
from rich.console import Console
from rich.markup import escape
from typer.core import TyperCommand

from unmake import __version__
from unmake.bootstrap import ensure_fresh
from unmake.builds.orchestrator import execute
from unmake.config import Settings, get_settings, print_settings_json
from unmake.errors import UnmakeError, outcome_for
from unmake.log import configure_logging
from unmake.types import BuildRequest

logger = logging.getLogger(__name__)

PROG = "unmake"

OPTIONS: list[tuple[str, str]] = [
    ("", "Build default settings."),
    ("-clean", "Clean build directories."),
    ("-full", "Clean, build and run."),
    ("-init", "Initialize the project directory."),
    ("-run", "Build default settings and run."),
    ("-config", "Show effective configuration as JSON."),
    ("-usage", "Display this usage message."),
]

# Flags that print and exit without touching the configuration
INFO_FLAGS = frozenset({"-usage", "--version", "-V", "--help"})

app = typer.Typer(
    name=PROG,
    help="Minimal incremental build orchestrator for C-like projects",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def print_usage(target: Console, prog: str = PROG) -> None:
    """Print the flag table to the given console."""
    commands = [f"{prog} {flag}" if flag else prog for flag, _ in OPTIONS]
    width = max(len(c) for c in commands) + 4

    target.print("Usage:", highlight=False)
    for command, (_, description) in zip(commands, OPTIONS):
        target.print(f"  {command:<{width}} {description}", highlight=False)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"unmake version {__version__}")
        raise typer.Exit()


def usage_callback(value: bool) -> None:
    """Print usage and exit."""
    if value:
        print_usage(console)
        raise typer.Exit()


def exit_status(returncode: int) -> int:
    """Shell-style exit status for a child's return code.

    A child killed by signal N reports -N; shells report that as 128 + N.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


class StrictFlagCommand(TyperCommand):
    """Command that accepts only its declared flags, spelled out in full.

    Click would otherwise read clustered short options (-xV), the "--"
    separator and "-flag=value" forms. Any token that is not exactly one
    of the declared flags prints the usage to stderr and exits 1.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        known: set[str] = set()
        for param in self.get_params(ctx):
            known.update(param.opts)
            known.update(param.secondary_opts)

        for token in args:
            if token not in known:
                err_console.print(f"Unknown flag: {escape(token)}", highlight=False)
                print_usage(err_console)
                raise typer.Exit(code=1)

        return super().parse_args(ctx, args)


def load_settings() -> Settings:
    """Load settings, turning configuration errors into a clean exit."""
    try:
        return get_settings()
    except UnmakeError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None


@app.command(cls=StrictFlagCommand)
def main(
    clean: Annotated[
        bool,
        typer.Option("-clean", help="Clean build directories"),
    ] = False,
    full: Annotated[
        bool,
        typer.Option("-full", help="Clean, build and run"),
    ] = False,
    init: Annotated[
        bool,
        typer.Option("-init", help="Initialize the project directory"),
    ] = False,
    run_after: Annotated[
        bool,
        typer.Option("-run", help="Build default settings and run"),
    ] = False,
    show_config: Annotated[
        bool,
        typer.Option("-config", help="Show effective configuration as JSON"),
    ] = False,
    usage: Annotated[
        bool | None,
        typer.Option(
            "-usage",
            help="Display the usage message",
            callback=usage_callback,
            is_eager=True,
        ),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Build the project: compile stale sources, link, copy libraries."""
    settings = load_settings()

    if show_config:
        console.print(
            print_settings_json(settings), markup=False, highlight=False, soft_wrap=True
        )
        return

    request = BuildRequest(
        clean=clean or full,
        init=init,
        build=run_after or full or not (clean or init),
        run=run_after or full,
    )

    try:
        report = execute(settings, request)
    except UnmakeError as e:
        logger.debug("Run ended with %s", outcome_for(e).value)
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    if report is None:
        return

    if report.copy is not None and report.copy.degraded:
        err_console.print(
            "[yellow]Warning: some or all library files could not be copied[/yellow]"
        )

    if report.run_exit_code is not None and report.run_exit_code != 0:
        raise typer.Exit(code=exit_status(report.run_exit_code))


def run() -> None:
    """Console script entry point.

    Self-rebuild runs before any flag is looked at, with the original
    argument vector. Informational flags still work when the configuration
    is invalid.
    """
    try:
        settings = get_settings()
    except UnmakeError as e:
        if not INFO_FLAGS.intersection(sys.argv[1:]):
            err_console.print(f"[red]{escape(str(e))}[/red]")
            sys.exit(1)
        app()
        return

    try:
        configure_logging(settings.log_level)
        exit_code = ensure_fresh(settings, sys.argv)
    except UnmakeError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    if exit_code is not None:
        sys.exit(exit_status(exit_code))

    app()


__all__ = ["StrictFlagCommand", "app", "exit_status", "main", "print_usage", "run"]
