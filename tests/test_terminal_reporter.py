"""Tests for the rich terminal reporter."""

from __future__ import annotations

from io import StringIO

from rich.console import Console

from covcheck.models.coverage import CoverageSnapshot
from covcheck.reporters.terminal import CLIReporter


def _reporter() -> tuple[CLIReporter, StringIO]:
    buffer = StringIO()
    return CLIReporter(Console(file=buffer, width=120, color_system=None)), buffer


def test_status_lines() -> None:
    reporter, buffer = _reporter()

    reporter.print_success("done")
    reporter.print_error("broken")

    assert buffer.getvalue().splitlines() == ["✓ done", "✗ broken"]


def test_print_snapshots_uses_labels_and_global_row() -> None:
    reporter, buffer = _reporter()
    coverages = {
        "unit.json": CoverageSnapshot(total=100, covered=90, coverage=90.0),
        "e2e.json": CoverageSnapshot(total=300, covered=150, coverage=50.0),
    }

    reporter.print_snapshots(
        coverages,
        {"unit.json": "Unit", "e2e.json": "E2E"},
        CoverageSnapshot(total=400, covered=240, coverage=60.0),
    )

    output = buffer.getvalue()
    assert "Unit" in output
    assert "E2E" in output
    assert "Global" in output
    assert "90%" in output
    assert "60%" in output


def test_print_report_renders_markdown() -> None:
    reporter, buffer = _reporter()
    reporter.print_report("*Unit* \n\n:x: Your code coverage has been degraded :sob:")
    assert "Your code coverage has been degraded" in buffer.getvalue()
