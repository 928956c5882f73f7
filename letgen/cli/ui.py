# letgen/cli/ui.py
"""
Shared UI helpers for CLI commands.

Usage:
    from letgen.cli.ui import ui, console

    ui.header("letgen gen")
    ui.success("Done!")
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console()


class UI:
    """Unified UI helpers on top of Rich."""

    def header(self, title: str, subtitle: str = "") -> None:
        """Print a fitted command header."""
        content = f"[bold]{title}[/bold]"
        if subtitle:
            content += f"\n[dim]{subtitle}[/dim]"
        console.print(Panel.fit(content, border_style="blue"))

    def success(self, msg: str) -> None:
        console.print(f"[green]✓[/green] {msg}")

    def error(self, msg: str) -> None:
        console.print(f"[red]✗[/red] {msg}")

    def info(self, msg: str) -> None:
        console.print(f"[dim]{msg}[/dim]")

    def diagnostic(self, title: str, body: str) -> None:
        """
        Print an engine diagnostic verbatim.

        Engine messages are multi-line and may contain brackets, so they are
        rendered as plain Text, never as markup, and never re-wrapped.
        """
        console.print(f"[red]✗[/red] [bold]{title}[/bold]")
        console.print(Text(body), soft_wrap=True, highlight=False)

    def table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        table = Table(title=title, show_lines=False)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        console.print(table)


ui = UI()

__all__ = ["UI", "ui", "console"]
