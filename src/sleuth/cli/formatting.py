"""Rich formatting helpers for the Sleuth CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from sleuth.models import AnswerAction
    from sleuth.tokens import TokenTracker


def get_console(stderr: bool = False) -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=stderr)


def format_answer(answer: AnswerAction, console: Console, *, answered: bool = True) -> None:
    """Display the final answer followed by its references."""
    if not answered:
        console.print("[yellow]No definitive answer was accepted; best effort below.[/yellow]")
    console.print("[bold]Final Answer:[/bold]")
    console.print(Markdown(answer.answer or "_(empty)_"))

    if answer.references:
        console.print()
        console.print("[bold]References:[/bold]")
        for i, ref in enumerate(answer.references, 1):
            console.print(f"  [{i}] [cyan]{escape(ref.url)}[/cyan]", highlight=False)
            if ref.exact_quote:
                console.print(f"      [dim]{escape(ref.exact_quote)}[/dim]", highlight=False)


def format_usage(tracker: TokenTracker, console: Console) -> None:
    """Display token usage per tool with the run total."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Tool", style="cyan")
    table.add_column("Tokens", justify="right", style="green")

    for tool, tokens in tracker.get_usage_breakdown().items():
        table.add_row(tool, f"{tokens:,}")
    total = tracker.get_total_usage()
    table.add_row("[bold]total[/bold]", f"[bold]{total:,}[/bold]")

    console.print(table)
    if tracker.budget:
        console.print(
            f"[dim]Budget used: {total:,} / {tracker.budget:,} "
            f"({tracker.budget_fraction():.1%})[/dim]"
        )


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
