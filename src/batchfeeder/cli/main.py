#!/usr/bin/env python3
"""
BatchFeeder CLI Main Application

Typer-based command-line interface with rich formatting.
"""

import typer
from rich.console import Console
from typing import Optional

from batchfeeder import __version__
from batchfeeder.cli.commands import run

console = Console()

# Create main Typer application
app = typer.Typer(
    name="batchfeeder",
    help="Pull items in batches and process them with bounded concurrency",
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.command("run", help="Run a command once per input line, with bounded concurrency")(run.run_command)


def version_callback(value: bool):
    """Show version information."""
    if value:
        console.print(f"[bold cyan]BatchFeeder[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information and exit"
    ),
):
    """
    BatchFeeder - batch-pull, bounded-concurrency processing

    [bold]Quick Start:[/bold]

    • Run a command per line: [cyan]batchfeeder run urls.txt --command "curl -sO"[/cyan]
    • Read from stdin: [cyan]cat ids.txt | batchfeeder run - -x ./handle.sh -j 8[/cyan]
    """
    pass


def main():
    """Entry point for the batchfeeder console script."""
    app()


if __name__ == "__main__":
    main()
