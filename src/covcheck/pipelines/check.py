"""Check pipeline: compare fresh coverage against the stored baselines."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covcheck.analyzers.aggregate import parse_coverages, sum_coverages
from covcheck.analyzers.compare import (
    DEFAULT_REF_LABEL,
    ComparisonResult,
    combine_sections,
    compare,
    format_section,
)
from covcheck.models.coverage import CoverageSnapshot, format_percent

if TYPE_CHECKING:
    from collections.abc import Mapping

    from covcheck.config import CheckerConfig
    from covcheck.reporters.github_comment import GitHubCommentReporter
    from covcheck.store.base import BlobStore
    from covcheck.utils.git import GitHubPRInfo

logger = logging.getLogger(__name__)

GLOBAL_TITLE = "Global"
NO_BASELINE_MESSAGE = "No baseline coverage found yet."


@dataclass
class CheckResult:
    """Outcome of a check run."""

    coverages: dict[str, CoverageSnapshot] = field(default_factory=dict)
    """Current snapshots, keyed by storage label."""

    baselines: dict[str, CoverageSnapshot] = field(default_factory=dict)
    """Baselines that were found, keyed by storage label."""

    comparisons: dict[str, ComparisonResult] = field(default_factory=dict)
    """Per-report comparisons, keyed by summary file name."""

    overall: ComparisonResult | None = None
    """Comparison of the summed baselines against the summed snapshots, if run."""

    message: str = ""
    """Combined report message."""

    posted: bool = False
    """Whether the message was posted as a PR comment."""

    comment_url: str = ""
    """URL of the managed comment, when posted."""

    @property
    def failed(self) -> bool:
        """Return True if any comparison found a decrease."""
        if self.overall is not None and self.overall.failed:
            return True
        return any(result.failed for result in self.comparisons.values())


class CheckPipeline:
    """Parse, fetch baselines, compare and notify.

    Steps run sequentially; the first fatal error aborts the run. A decrease
    in coverage is not an error: it is reported through ``CheckResult.failed``
    after the message has been posted.
    """

    def __init__(
        self,
        config: CheckerConfig,
        store: BlobStore,
        notifier: GitHubCommentReporter | None = None,
        pr_info: GitHubPRInfo | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._notifier = notifier
        self._pr_info = pr_info

    @property
    def ref_label(self) -> str:
        """Column header used for the current ref in delta tables."""
        return self._config.github.ref or DEFAULT_REF_LABEL

    def run(self) -> CheckResult:
        """Parse every configured report, then compare and notify.

        Raises:
            ReportNotFoundError: If a report cannot be located.
            MalformedReportError: If a report or a stored baseline is malformed.
            BaselineFetchError: If a baseline cannot be read.
            NotificationError: If posting the comment fails.
        """
        logger.info("Parsing coverage reports...")
        coverages = parse_coverages(self._config.files, self._config.root)
        return self.run_with(coverages)

    def run_with(self, coverages: Mapping[str, CoverageSnapshot]) -> CheckResult:
        """Compare already-parsed ``coverages`` against the baselines and notify."""
        result = CheckResult(coverages=dict(coverages))
        sections: list[str] = []

        for summary, snapshot in coverages.items():
            baseline = self._fetch_baseline(summary)
            if baseline is None:
                logger.warning(
                    "No base coverage %s found. Current coverage is %s%% (%d lines, %d covered)",
                    summary,
                    format_percent(snapshot.coverage),
                    snapshot.total,
                    snapshot.covered,
                )
                continue

            result.baselines[summary] = baseline
            title = self._config.file_for_summary(summary).label
            comparison = compare(baseline, snapshot, ref_label=self.ref_label)
            result.comparisons[summary] = comparison
            sections.append(format_section(title, comparison))

        if len(coverages) > 1:
            if result.baselines:
                comparison = compare(
                    sum_coverages(result.baselines),
                    sum_coverages(coverages),
                    ref_label=self.ref_label,
                )
                result.overall = comparison
                sections.append(format_section(GLOBAL_TITLE, comparison))
            else:
                logger.info("No baseline found for any report, skipping global comparison")

        result.message = combine_sections(sections) if sections else NO_BASELINE_MESSAGE
        logger.info("Coverage report:\n%s", result.message)

        self._notify(result)
        if result.failed:
            logger.error("Code coverage has been degraded")
        return result

    def _fetch_baseline(self, summary: str) -> CoverageSnapshot | None:
        data = self._store.get_json(summary)
        if data is None:
            return None
        logger.debug("Fetched baseline %s: %s", summary, data)
        return CoverageSnapshot.from_dict(data)

    def _notify(self, result: CheckResult) -> None:
        if self._notifier is None or self._pr_info is None:
            logger.info("Not running for a pull request, skipping comment")
            return
        outcome = self._notifier.post_report(self._pr_info, result.message)
        result.posted = True
        result.comment_url = outcome.get("comment_url", "")
