"""Snapshot comparison and delta message formatting."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from covcheck.models.coverage import format_percent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from covcheck.models.coverage import CoverageSnapshot

DEFAULT_REF_LABEL = "This change"
SECTION_DIVIDER = "\n---\n"

_FAILURE_HEADLINE = ":x: Your code coverage has been degraded :sob:"
_SUCCESS_HEADLINE = ":white_check_mark: Your code coverage has not been degraded :tada:"


class Verdict(Enum):
    """Outcome of a single comparison."""

    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class ComparisonResult:
    """Verdict and report message for one old/new comparison."""

    verdict: Verdict
    message: str
    old: CoverageSnapshot
    new: CoverageSnapshot

    @property
    def failed(self) -> bool:
        """Return True if coverage decreased."""
        return self.verdict is Verdict.FAIL


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def coverage_delta(old: CoverageSnapshot, new: CoverageSnapshot) -> Decimal:
    """Return ``new.coverage - old.coverage`` rounded to 3 decimals.

    Both percentages already carry at most 3 decimals, so the decimal
    subtraction is exact.
    """
    return (_to_decimal(new.coverage) - _to_decimal(old.coverage)).quantize(Decimal("0.001"))


def format_delta(delta: Decimal) -> str:
    """Render a delta with an explicit sign and 3 decimals (``+2.000``, ``-1.000``)."""
    return f"{delta:+.3f}"


def build_delta_message(
    old: CoverageSnapshot, new: CoverageSnapshot, ref_label: str = DEFAULT_REF_LABEL
) -> str:
    """Format the old/new table and signed delta as markdown."""
    return "\n".join(
        [
            "",
            f"| Measure | Main branch | {ref_label} |",
            "| --- | --- | --- |",
            f"| Coverage | {format_percent(old.coverage)}% | {format_percent(new.coverage)}% |",
            f"| Total lines | {old.total} | {new.total} |",
            f"| Covered lines | {old.covered} | {new.covered} |",
            "",
            f"∆ {format_delta(coverage_delta(old, new))}",
            "",
        ]
    )


def compare(
    old: CoverageSnapshot, new: CoverageSnapshot, *, ref_label: str = DEFAULT_REF_LABEL
) -> ComparisonResult:
    """Compare a baseline snapshot with a new one.

    The verdict is FAIL if and only if ``new.coverage < old.coverage``; equal
    coverage passes.
    """
    verdict = Verdict.FAIL if new.coverage < old.coverage else Verdict.PASS
    headline = _FAILURE_HEADLINE if verdict is Verdict.FAIL else _SUCCESS_HEADLINE
    return ComparisonResult(
        verdict=verdict,
        message=headline + build_delta_message(old, new, ref_label),
        old=old,
        new=new,
    )


def format_section(title: str, result: ComparisonResult) -> str:
    """Prefix a comparison message with its bold title."""
    return f"*{title}* \n\n{result.message}"


def combine_sections(sections: Iterable[str]) -> str:
    """Join section messages with a visible divider."""
    return SECTION_DIVIDER.join(sections)
