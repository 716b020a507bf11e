"""Data models shared across covcheck."""

from covcheck.models.coverage import (
    CoverageSnapshot,
    HistoryEntry,
    compute_percentage,
    format_percent,
)

__all__ = [
    "CoverageSnapshot",
    "HistoryEntry",
    "compute_percentage",
    "format_percent",
]
