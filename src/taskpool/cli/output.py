"""Rich console output helpers."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table

# Shared console instance
console = Console()
error_console = Console(stderr=True)

PRIORITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "dim",
}


def print_error(message: str) -> None:
    """Print an error message."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def create_table(title: str, columns: list[tuple[str, str]]) -> Table:
    """Create a styled table.

    Args:
        title: Table title
        columns: List of (name, style) tuples
    """
    table = Table(title=title, show_header=True, header_style="bold")
    for name, style in columns:
        table.add_column(name, style=style)
    return table


def print_task_table(tasks: list[dict[str, Any]], title: str = "Tasks") -> None:
    """Print a table of tasks in the order given."""
    if not tasks:
        print_info("No tasks.")
        return

    table = create_table(
        title,
        [
            ("#", "dim"),
            ("ID", "cyan"),
            ("Title", ""),
            ("Priority", ""),
            ("Status", "magenta"),
            ("Due", ""),
            ("Claimed by", "dim"),
        ],
    )
    for i, task in enumerate(tasks, 1):
        priority = task.get("priority", "")
        style = PRIORITY_STYLES.get(priority, "")
        due = task.get("due_date") or ""
        if task.get("is_overdue"):
            due = f"[red]{due} (overdue)[/red]"
        claimed_by = task.get("claimed_by_agent_id") or ""
        if task.get("is_claimable"):
            claimed_by = ""
        table.add_row(
            str(i),
            task["id"],
            task.get("title", ""),
            f"[{style}]{priority}[/{style}]" if style else priority,
            task.get("status", ""),
            due,
            claimed_by,
        )
    console.print(table)


def print_stats(stats: dict[str, int]) -> None:
    console.print(f"[cyan]Total tasks:[/cyan] {stats.get('total', 0)}")
    console.print(f"  open:        {stats.get('open', 0)}")
    console.print(f"  in progress: {stats.get('in_progress', 0)}")
    console.print(f"  completed:   {stats.get('completed', 0)}")
    overdue = stats.get("overdue", 0)
    style = "red" if overdue else "dim"
    console.print(f"  [{style}]overdue:     {overdue}[/{style}]")
