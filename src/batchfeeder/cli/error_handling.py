import logging

from batchfeeder.core.exceptions import BatchFeederError
import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.padding import Padding

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def handle_error(err: BatchFeederError):
    """Handles BatchFeederError exceptions, formats them, and prints them to the console."""
    console.print()
    error_panel = Panel(
        Text(err.message, justify="full"),
        title=f"[bold red]Error: {err.__class__.__name__}[/bold red]",
        subtitle=f"code {err.error_code.value}",
        border_style="red",
        expand=False
    )
    console.print(error_panel)

    if err.context.correlation_id:
        console.print(Padding(f"Trace ID: [yellow]{err.context.correlation_id}[/yellow]", (1, 0, 0, 0)))

    logger.debug(f"Error details: {err.to_dict()}")
    raise typer.Exit(code=1)
