"""Console output for the pysnc command line."""

import json
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from .config import LogLevel


class OutputFormatter:
    """Formats user-facing messages.

    The verbosity is passed in explicitly instead of being read from global
    logging state: messages below ``level`` are dropped. ``quiet`` hides
    everything except errors, and ``json_output`` leaves stdout to
    :meth:`output_json` only.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        level: LogLevel = LogLevel.INFO,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.json_output = json_output
        self.quiet = quiet
        self.level = LogLevel.from_string(level)
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def _enabled(self, level: LogLevel) -> bool:
        if level != LogLevel.ERROR and (self.quiet or self.json_output):
            return False
        return self.level.allows(level)

    def print(self, message: str = "") -> None:
        """Print a plain line at info level."""
        if self._enabled(LogLevel.INFO):
            self.console.print(message)

    def info(self, message: str) -> None:
        if self._enabled(LogLevel.INFO):
            self.console.print(message)

    def debug(self, message: str) -> None:
        if self._enabled(LogLevel.DEBUG):
            self.console.print(f"[dim]{message}[/dim]")

    def success(self, message: str) -> None:
        if self._enabled(LogLevel.INFO):
            self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        if self._enabled(LogLevel.WARN):
            self.err_console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Print an error to stderr (shown even in quiet mode)."""
        if self._enabled(LogLevel.ERROR):
            self.err_console.print(f"[red]Error:[/red] {message}")

    def output_json(self, data: Any) -> None:
        """Write data as JSON to stdout.

        Bypasses rich so long values are never wrapped.
        """
        click.echo(json.dumps(data, indent=2, default=str))

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a two-column summary table.

        Args:
            title: Table title
            items: (label, value) rows
        """
        if not self._enabled(LogLevel.INFO):
            return
        table = Table(title=title, show_header=False, title_justify="left")
        table.add_column("Item", style="bold")
        table.add_column("Value")
        for label, value in items:
            table.add_row(label, value)
        self.console.print(table)
