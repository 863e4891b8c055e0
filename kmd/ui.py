"""Console output for command handlers."""

from __future__ import annotations

from typing import Iterable, Optional

import click
from rich.console import Console
from rich.markup import escape


class UI:
    """Echoes captured child output to stdout and prints diagnostics to stderr.

    Child output is written verbatim with ``click.echo`` (tabs, carriage
    returns and form feeds survive redirection into a file). Only kmd's own
    diagnostics go through rich.
    """

    def __init__(self, error_console: Optional[Console] = None) -> None:
        self.error_console = error_console or Console(stderr=True, highlight=False, soft_wrap=True)

    def lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            # color=True stops click from stripping ANSI sequences the child emitted
            click.echo(line, color=True)

    def error(self, message: str) -> None:
        self.error_console.print(f"[bold red]kmd:[/bold red] {escape(message)}", emoji=False)


__all__ = ["UI"]
