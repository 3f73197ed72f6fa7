"""
Run Command

Feeds the lines of an input file to a command, one process per line, with
bounded concurrency and a live progress display.
"""

import asyncio
import contextlib
import itertools
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Annotated, TextIO, Tuple
import typer
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn, TimeElapsedColumn
from rich.markup import escape
from rich.table import Table

from batchfeeder.cli.error_handling import handle_error
from batchfeeder.cli.utils import console, validate_positive_int, print_config_summary, handle_keyboard_interrupt
from batchfeeder.core.config import ConfigManager, FeederConfig
from batchfeeder.core.concurrency import FeederStats, feed
from batchfeeder.core.exceptions import BatchFeederError, ErrorCode, ItemProcessingError, SourceError, ValidationError
from batchfeeder.core.logging_setup import setup_logging


MAX_LISTED_FAILURES = 10


@dataclass
class RunSummary:
    """Outcome of a run command."""
    stats: FeederStats
    failures: List[Tuple[str, str]] = field(default_factory=list)
    source_error: Optional[SourceError] = None


def run_command(
    input_path: Annotated[str, typer.Argument(help="File with one item per line ('-' reads stdin)")],
    command: Annotated[str, typer.Option("--command", "-x", help="Command to run per item; the item is appended as its last argument")],

    # Configuration
    config: Annotated[Optional[str], typer.Option("--config", "-c", help="Configuration file path")] = None,

    # Feeder settings
    concurrency: Annotated[Optional[int], typer.Option("--concurrency", "-j", callback=validate_positive_int, help="Maximum commands running at once")] = None,
    batch_size: Annotated[Optional[int], typer.Option("--batch-size", "-b", callback=validate_positive_int, help="Lines read from the input per fetch")] = None,

    # Output settings
    verbose: Annotated[Optional[bool], typer.Option("--verbose", "-v", help="Enable verbose output")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")] = None,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Hide the progress display and configuration summary")] = False,
):
    """
    Run COMMAND once for every non-blank line of INPUT_PATH.

    Exits with status 1 if any command fails or the input cannot be read
    to the end.
    """
    cli_args = {
        'concurrency': concurrency,
        'batch_size': batch_size,
        'verbose': verbose,
        'log_level': log_level,
    }

    try:
        app_config = ConfigManager(config_file=config).load_config(cli_args=cli_args)
        if app_config.feeder.concurrency == 0:
            raise ValidationError(
                "Concurrency must be at least 1 for the run command",
                error_code=ErrorCode.VALIDATION_RANGE_ERROR,
                field_name="concurrency",
                field_value=0
            )
        argv = shlex.split(command)
        if not argv:
            raise ValidationError("Command must not be empty", field_name="command", field_value=command)
    except BatchFeederError as e:
        handle_error(e)
    except ValueError as e:
        handle_error(ValidationError(f"Cannot parse command: {e}", field_name="command", field_value=command))

    setup_logging(app_config)

    if not quiet:
        print_config_summary({
            'input': input_path,
            'command': command,
            'concurrency': app_config.feeder.concurrency,
            'batch_size': app_config.feeder.batch_size,
        })

    try:
        with _open_input(input_path) as handle:
            summary = asyncio.run(_run_items(_iter_items(handle), argv, app_config.feeder, show_progress=not quiet))
    except BatchFeederError as e:
        handle_error(e)
    except KeyboardInterrupt:
        handle_keyboard_interrupt()

    _print_summary(summary)
    if summary.source_error is not None:
        handle_error(summary.source_error)
    if summary.stats.failed:
        raise typer.Exit(code=1)


def _open_input(input_path: str):
    if input_path == '-':
        return contextlib.nullcontext(sys.stdin)
    path = Path(input_path)
    if not path.is_file():
        raise ValidationError(f"Input file not found: {input_path}", field_name="input", field_value=input_path)
    return open(path, 'r', encoding='utf-8')


def _iter_items(handle: TextIO) -> Iterator[str]:
    for line in handle:
        item = line.strip()
        if item:
            yield item


async def _run_items(items: Iterator[str], argv: List[str], feeder_config: FeederConfig,
                     show_progress: bool = True) -> RunSummary:
    """Feed ``items`` through ``argv`` and collect the outcome."""
    failures: List[Tuple[str, str]] = []
    fetched = 0

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        disable=not show_progress,
    )
    task_id = progress.add_task("Processing", total=None)

    async def fetch() -> List[str]:
        nonlocal fetched
        batch = list(itertools.islice(items, feeder_config.batch_size))
        fetched += len(batch)
        progress.update(task_id, total=fetched)
        return batch

    async def process(item: str) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv, item,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
            if proc.returncode != 0:
                detail = stderr.decode(errors='replace').strip()
                message = f"exit status {proc.returncode}"
                if detail:
                    message = f"{message}: {detail}"
                raise ItemProcessingError(message, item=item, error_code=ErrorCode.PROCESSING_COMMAND_FAILED)
        except Exception as e:
            failures.append((item, str(e)))
            raise
        finally:
            progress.advance(task_id)

    with progress:
        try:
            stats = await feed(fetch, process, concurrency=feeder_config.concurrency, name="run")
        except SourceError as e:
            return RunSummary(stats=e.stats, failures=failures, source_error=e)

    return RunSummary(stats=stats, failures=failures)


def _print_summary(summary: RunSummary) -> None:
    stats = summary.stats
    table = Table(title="Run Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Items", str(stats.resolved))
    table.add_row("Completed", f"[green]{stats.completed}[/green]")
    table.add_row("Failed", f"[red]{stats.failed}[/red]" if stats.failed else "0")
    table.add_row("Batches", str(stats.batches))
    console.print(table)

    if summary.failures:
        console.print("\n[bold red]Failed items:[/bold red]")
        for item, reason in summary.failures[:MAX_LISTED_FAILURES]:
            console.print(f"  [cyan]{escape(item)}[/cyan]: {escape(reason)}")
        hidden = len(summary.failures) - MAX_LISTED_FAILURES
        if hidden > 0:
            console.print(f"  [dim]... and {hidden} more[/dim]")
