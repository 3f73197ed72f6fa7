"""
CLI Utilities

Shared utilities for CLI commands including validation and formatting.
"""

from typing import Any, Dict, Optional
import typer
from rich.panel import Panel
from rich.console import Console

console = Console()


def validate_positive_int(value: Optional[int]) -> Optional[int]:
    """Validate integer is positive."""
    if value is not None and value <= 0:
        raise typer.BadParameter("Value must be a positive integer")
    return value


def print_config_summary(config: Dict[str, Any]) -> None:
    """Print a summary of the current configuration."""
    config_lines = []

    if config.get("input"):
        config_lines.append(f"Input: [cyan]{config['input']}[/cyan]")
    if config.get("command"):
        config_lines.append(f"Command: [cyan]{config['command']}[/cyan]")
    if config.get("concurrency") is not None:
        config_lines.append(f"Concurrency: [cyan]{config['concurrency']}[/cyan]")
    if config.get("batch_size") is not None:
        config_lines.append(f"Batch size: [cyan]{config['batch_size']}[/cyan]")

    if config_lines:
        console.print(Panel(
            "\n".join(config_lines),
            title="[bold]Configuration[/bold]",
            border_style="green"
        ))


def handle_keyboard_interrupt() -> None:
    """Handle keyboard interrupt gracefully."""
    console.print("\n[yellow]Operation cancelled by user[/yellow]")
    raise typer.Exit(1)
