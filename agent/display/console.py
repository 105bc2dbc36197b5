"""Console helper functions for the relay CLI.

Contains Rich console utilities for formatted output.
"""
from rich.console import Console
from rich.table import Table

# Global console instance for Rich output
console = Console()


def print_header(text: str, style: str = "bold white") -> None:
    """Print a section header."""
    console.print(f"\n[{style}]=== {text} ===[/{style}]")


def print_success(text: str) -> None:
    """Print a success message."""
    console.print(f"[green]{text}[/green]")


def print_warning(text: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{text}[/yellow]")


def print_error(text: str) -> None:
    """Print an error message."""
    console.print(f"[red]{text}[/red]")


def print_info(text: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{text}[/dim]")


def print_field(label: str, value: str | None) -> None:
    """Print a ``label: value`` line, showing missing values as N/A."""
    shown = value if value else "[dim]N/A[/dim]"
    console.print(f"  [bold]{label}:[/bold] {shown}")


def print_channel_table(rows: list[dict]) -> None:
    """Print channels as a table.

    Args:
        rows: Dicts with ``name``, ``enabled``, ``details`` keys.
    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Channel")
    table.add_column("Status")
    table.add_column("Details", style="dim")
    for row in rows:
        status = "[green]enabled[/green]" if row["enabled"] else "[dim]disabled[/dim]"
        table.add_row(row["name"], status, row.get("details") or "")
    console.print(table)
