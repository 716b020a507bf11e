"""Coverage aggregation and comparison."""

from covcheck.analyzers.aggregate import parse_coverages, sum_coverages
from covcheck.analyzers.compare import (
    ComparisonResult,
    Verdict,
    build_delta_message,
    combine_sections,
    compare,
    coverage_delta,
    format_delta,
    format_section,
)

__all__ = [
    "ComparisonResult",
    "Verdict",
    "build_delta_message",
    "combine_sections",
    "compare",
    "coverage_delta",
    "format_delta",
    "format_section",
    "parse_coverages",
    "sum_coverages",
]
