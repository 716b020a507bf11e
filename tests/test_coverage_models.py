"""Tests for coverage snapshot models (models/coverage.py)."""

from __future__ import annotations

import pytest

from covcheck.errors import MalformedReportError
from covcheck.models.coverage import (
    CoverageSnapshot,
    HistoryEntry,
    compute_percentage,
    format_percent,
)

# ── compute_percentage ───────────────────────────────────────────


class TestComputePercentage:
    def test_exact_value(self) -> None:
        assert compute_percentage(total=200, covered=160) == 80.0

    def test_rounds_to_three_decimals(self) -> None:
        assert compute_percentage(total=3, covered=2) == 66.667
        assert compute_percentage(total=3, covered=1) == 33.333

    def test_ties_round_half_up(self) -> None:
        # 100 * 1 / 8000 == 0.0125 exactly
        assert compute_percentage(total=8000, covered=1) == 0.013
        assert compute_percentage(total=8000, covered=5) == 0.063

    def test_full_and_empty_coverage(self) -> None:
        assert compute_percentage(total=7, covered=7) == 100.0
        assert compute_percentage(total=7, covered=0) == 0.0

    def test_zero_total_raises(self) -> None:
        with pytest.raises(MalformedReportError, match="total is zero"):
            compute_percentage(total=0, covered=0)


def test_format_percent_drops_trailing_zeros() -> None:
    assert format_percent(80.0) == "80"
    assert format_percent(92.5) == "92.5"
    assert format_percent(79.123) == "79.123"


# ── CoverageSnapshot ─────────────────────────────────────────────


class TestCoverageSnapshot:
    def test_from_counts(self) -> None:
        snapshot = CoverageSnapshot.from_counts(total=250, covered=200)
        assert snapshot == CoverageSnapshot(total=250, covered=200, coverage=80.0)

    def test_from_counts_rejects_covered_above_total(self) -> None:
        with pytest.raises(MalformedReportError, match="exceed"):
            CoverageSnapshot.from_counts(total=10, covered=11)

    def test_from_counts_rejects_negative_counts(self) -> None:
        with pytest.raises(MalformedReportError, match="non-negative"):
            CoverageSnapshot.from_counts(total=-1, covered=0)

    def test_from_counts_rejects_zero_total(self) -> None:
        with pytest.raises(MalformedReportError):
            CoverageSnapshot.from_counts(total=0, covered=0)

    def test_dict_form(self) -> None:
        snapshot = CoverageSnapshot.from_counts(total=3, covered=2)
        assert snapshot.to_dict() == {"total": 3, "covered": 2, "coverage": 66.667}
        assert CoverageSnapshot.from_dict(snapshot.to_dict()) == snapshot

    def test_from_dict_keeps_stored_coverage(self) -> None:
        snapshot = CoverageSnapshot.from_dict({"total": 100, "covered": 80, "coverage": 80})
        assert snapshot.coverage == 80.0
        assert isinstance(snapshot.coverage, float)

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"total": 100, "covered": 80},
            {"total": "100", "covered": 80, "coverage": 80.0},
            {"total": 100, "covered": True, "coverage": 80.0},
            {"total": 100, "covered": 80, "coverage": "80"},
        ],
    )
    def test_from_dict_rejects_malformed(self, data: object) -> None:
        with pytest.raises(MalformedReportError):
            CoverageSnapshot.from_dict(data)


def test_history_entry_to_dict() -> None:
    entry = HistoryEntry(time="2024-05-01T10:00:00.000Z", coverage=81.2)
    assert entry.to_dict() == {"time": "2024-05-01T10:00:00.000Z", "coverage": 81.2}
