"""Multi-report aggregation: one snapshot per configured report, plus a global sum."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covcheck.adapters.registry import get_adapter
from covcheck.models.coverage import CoverageSnapshot

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from covcheck.config import CoverageFileConfig

logger = logging.getLogger(__name__)


def parse_coverages(
    files: Iterable[CoverageFileConfig], root: Path
) -> dict[str, CoverageSnapshot]:
    """Parse every configured report, in order, keyed by storage label.

    The first failing report aborts the whole aggregation; no partial map is
    returned.

    Args:
        files: Report descriptors, processed sequentially.
        root: Directory that report paths and globs are resolved against.

    Returns:
        Mapping of storage label to snapshot.

    Raises:
        ReportNotFoundError: If a report path matches nothing.
        MalformedReportError: If a report cannot be reduced to a snapshot.
    """
    reports: dict[str, CoverageSnapshot] = {}
    for entry in files:
        logger.info("Parsing %s...", entry.coverage)
        reports[entry.summary] = get_adapter(entry.format).parse(entry.coverage, root)
        logger.info("Parsed %s", entry.coverage)
    return reports


def sum_coverages(coverages: Mapping[str, CoverageSnapshot]) -> CoverageSnapshot:
    """Combine snapshots by summing their counts and recomputing the percentage.

    Percentages are never averaged: the result is weighted by each report's
    ``total``.

    Raises:
        ValueError: If ``coverages`` is empty.
    """
    if not coverages:
        raise ValueError("Cannot sum an empty set of coverages")
    total = sum(snapshot.total for snapshot in coverages.values())
    covered = sum(snapshot.covered for snapshot in coverages.values())
    return CoverageSnapshot.from_counts(total=total, covered=covered)
