"""Terminal reporting for model loads, index builds and searches.

Every line goes through one themed Rich console. Status lines carry a
leading glyph per level; embeddings, scores and cache paths have their own
compact renderings so CLI output stays scannable.
"""
from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.text import Text
from rich.theme import Theme


EMOVEC_THEME = Theme(
    {
        "info": "bold #7dcfff",
        "success": "bold #9ece6a",
        "warning": "bold #e0af68",
        "error": "bold #f7768e",
        "highlight": "bold #bb9af7",
        "muted": "dim #565f89",
        "metric": "#7aa2f7",
        "path": "italic #73daca",
    }
)

# Theme style name -> leading glyph for status lines.
_GLYPHS = {
    "info": "ℹ",
    "success": "✓",
    "warning": "⚠",
    "error": "✗",
}

_RULE_WIDTH = 40


def _format_value(value: float | int | str) -> str:
    return f"{value:.4f}" if isinstance(value, float) else str(value)


class Logger:
    """Themed console output shared by the engine, store and CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console if console is not None else Console(theme=EMOVEC_THEME)

    def _status(self, level: str, message: str) -> None:
        self.console.print(f"[{level}]{_GLYPHS[level]}[/{level}] {message}")

    def _labelled(self, label: str, body: str) -> None:
        self.console.print(f"  [muted]{label}:[/muted] {body}")

    def log(self, message: str) -> None:
        self.console.print(message)

    def info(self, message: str) -> None:
        self._status("info", message)

    def success(self, message: str) -> None:
        self._status("success", message)

    def warning(self, message: str) -> None:
        self._status("warning", message)

    def error(self, message: str) -> None:
        self._status("error", message)

    def header(self, title: str, subtitle: str | None = None) -> None:
        """Open a block of output, e.g. the result list of one query."""
        line = Text("━━━ ", style="muted")
        line.append(title, style="highlight")
        if subtitle:
            line.append(f" • {subtitle}", style="muted")
        line.append(" " + "━" * _RULE_WIDTH, style="muted")
        self.console.print()
        self.console.print(line)
        self.console.print()

    def table(
        self,
        title: str | None = None,
        columns: list[str] | None = None,
        rows: list[list[str]] | None = None,
    ) -> Table:
        """Build a themed table.

        The table is printed right away when both columns and rows are
        given; callers that fill it row by row get it back empty.
        """
        table = Table(
            title=title,
            title_style="highlight",
            header_style="info",
            border_style="muted",
            row_styles=["", "dim"],
        )
        if not columns or rows is None:
            return table

        for name in columns:
            table.add_column(name)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)
        return table

    def key_value(self, data: dict[str, Any], title: str | None = None) -> None:
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="muted")
        grid.add_column(style="metric")
        for key, value in data.items():
            grid.add_row(f"{key}:", str(value))

        if title:
            self.console.print(f"[muted]──[/muted] [highlight]{title}[/highlight]")
        self.console.print(grid)

    def metric(self, name: str, value: float | int | str, unit: str = "") -> None:
        self._labelled(name, f"[metric]{_format_value(value)}[/metric]{unit}")

    def vector(self, name: str, values: Sequence[float], head: int = 8) -> None:
        """Print the first `head` components of an embedding, 3 decimals each."""
        components = list(values)
        preview = ", ".join(f"{v:.3f}" for v in components[:head])
        if len(components) > head:
            preview += ", ..."
        self._labelled(name, f"[metric][{preview}][/metric]")

    def path(self, filepath: str, label: str = "") -> None:
        body = f"[path]{filepath}[/path]"
        if label:
            self._labelled(label, body)
        else:
            self.console.print(f"  {body}")

    def spinner(self) -> Progress:
        """Indeterminate progress for steps with no known length (weight loading)."""
        return Progress(
            SpinnerColumn(style="info"),
            TextColumn("[info]{task.description}[/info]"),
            console=self.console,
            transient=True,
        )

    def progress_bar(self) -> Progress:
        """Fractional progress for index builds; tasks run from 0.0 to 1.0."""
        return Progress(
            SpinnerColumn(style="info"),
            TextColumn("[info]{task.description}[/info]"),
            BarColumn(bar_width=_RULE_WIDTH, style="muted", complete_style="success"),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )


_logger: Logger | None = None


def get_logger() -> Logger:
    """Return the process-wide Logger, creating it on first use."""
    global _logger
    if _logger is None:
        _logger = Logger()
    return _logger
