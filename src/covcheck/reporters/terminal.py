"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from covcheck.models.coverage import format_percent
from covcheck.utils.badge import badge_color

if TYPE_CHECKING:
    from collections.abc import Mapping

    from covcheck.models.coverage import CoverageSnapshot

console = Console()


class CLIReporter:
    """Rich terminal output for covcheck commands."""

    def __init__(self, output: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = output or console

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

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_snapshots(
        self,
        coverages: Mapping[str, CoverageSnapshot],
        labels: Mapping[str, str] | None = None,
        overall: CoverageSnapshot | None = None,
    ) -> None:
        """Print one row per report plus an optional global row."""
        table = Table(title="Coverage", show_lines=False)
        table.add_column("Report", style="bold")
        table.add_column("Coverage", justify="right")
        table.add_column("Covered", justify="right")
        table.add_column("Total", justify="right")

        for summary, snapshot in coverages.items():
            name = (labels or {}).get(summary, summary)
            table.add_row(name, *self._snapshot_cells(snapshot))
        if overall is not None:
            table.add_row("[bold]Global[/bold]", *self._snapshot_cells(overall))

        self.console.print(table)

    def print_report(self, message: str) -> None:
        """Render a comparison report (markdown) in a panel."""
        self.console.print(Panel(Markdown(message), border_style="cyan", padding=(0, 1)))

    @staticmethod
    def _snapshot_cells(snapshot: CoverageSnapshot) -> tuple[str, str, str]:
        color = badge_color(snapshot.coverage)
        return (
            f"[{color}]{format_percent(snapshot.coverage)}%[/{color}]",
            str(snapshot.covered),
            str(snapshot.total),
        )


reporter = CLIReporter()
