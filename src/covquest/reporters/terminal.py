"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from covquest.adapters.coverage.base import CoverageTag

if TYPE_CHECKING:
    from covquest.adapters.coverage.base import ClassDetails, SourceLine
    from covquest.challenges.base import Challenge

console = Console()

_GOOD_COVERAGE = 80.0
_FAIR_COVERAGE = 50.0
_MAX_LINE_TEXT_LENGTH = 60

_TAG_STYLES = {
    CoverageTag.NOT_COVERED: ("red", "not covered"),
    CoverageTag.PARTIALLY_COVERED: ("yellow", "partial"),
    CoverageTag.FULLY_COVERED: ("green", "covered"),
}


def _coverage_color(percentage: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if percentage >= _GOOD_COVERAGE:
        return "green"
    if percentage >= _FAIR_COVERAGE:
        return "yellow"
    return "red"


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


class CLIReporter:
    """Rich terminal output for challenges and coverage lines."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_lines(
        self, class_details: ClassDetails, lines: list[SourceLine], coverage: float
    ) -> None:
        """Print the lines of a class that a challenge could target."""
        color = _coverage_color(coverage)
        table = Table(
            title=f"{escape(class_details.qualified_name)} "
            f"([{color}]{coverage:.1f}%[/{color}] line coverage)"
        )
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("State")
        table.add_column("Content")
        for line in lines:
            style, label = _TAG_STYLES[line.tag]
            table.add_row(
                str(line.line_number),
                f"[{style}]{label}[/{style}]",
                escape(_truncate(line.text, _MAX_LINE_TEXT_LENGTH)),
            )
        self.console.print(table)

    def print_challenge(self, challenge: Challenge) -> None:
        """Print a single challenge with its score."""
        self.console.print(
            f"[bold]{escape(str(challenge))}[/bold] [dim]({challenge.score} points)[/dim]"
        )
        if challenge.is_tool_tip:
            self.console.print(f"  [dim]{escape(challenge.tool_tip_text)}[/dim]")


reporter = CLIReporter()
