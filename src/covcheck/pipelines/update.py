"""Update pipeline: publish baselines, badges and history to the store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covcheck.analyzers.aggregate import parse_coverages
from covcheck.memory.history import HistoryLedger, iso_timestamp
from covcheck.utils.badge import build_badge_url, fetch_badge

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from covcheck.config import CheckerConfig
    from covcheck.models.coverage import CoverageSnapshot
    from covcheck.store.base import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class UpdateResult:
    """Outcome of an update run."""

    coverages: dict[str, CoverageSnapshot] = field(default_factory=dict)
    """Snapshots written as the new baselines, keyed by storage label."""

    badges: list[str] = field(default_factory=list)
    """Badge keys written to the store."""

    timestamp: str = ""
    """Timestamp of the history entries appended in this run."""


class UpdatePipeline:
    """Write baselines, badges and one history entry per report, then commit once."""

    def __init__(
        self,
        config: CheckerConfig,
        store: BlobStore,
        *,
        badge_fetcher: Callable[[str], bytes] = fetch_badge,
        clock: Callable[[], str] = iso_timestamp,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Checker configuration.
            store: Baseline store the run writes to.
            badge_fetcher: Downloads a rendered badge from its URL.
            clock: Returns the timestamp recorded in history entries.
        """
        self._config = config
        self._store = store
        self._badge_fetcher = badge_fetcher
        self._clock = clock

    def run(self) -> UpdateResult:
        """Parse every configured report and publish the results.

        Raises:
            ReportNotFoundError: If a report cannot be located.
            MalformedReportError: If a report or the stored history is malformed.
            BadgeFetchError: If a badge cannot be rendered.
            StoreWriteError: If writing, committing or pushing fails.
        """
        logger.info("Parsing coverage reports...")
        coverages = parse_coverages(self._config.files, self._config.root)
        return self.run_with(coverages)

    def run_with(self, coverages: Mapping[str, CoverageSnapshot]) -> UpdateResult:
        """Publish already-parsed ``coverages``."""
        logger.info("Updating base coverage...")
        self._store.prepare()

        result = UpdateResult(coverages=dict(coverages), timestamp=self._clock())
        history_key = self._config.store.history_file
        ledger = HistoryLedger.load(self._store, history_key)

        for summary, snapshot in coverages.items():
            entry = self._config.file_for_summary(summary)

            logger.info("Writing %s report", summary)
            self._store.put_json(summary, snapshot.to_dict())

            if entry.badge:
                url = build_badge_url(
                    snapshot.coverage,
                    entry.label,
                    endpoint=self._config.badge.endpoint,
                    style=self._config.badge.style,
                )
                logger.info("Writing %s badge", entry.badge)
                self._store.put(entry.badge, self._badge_fetcher(url))
                result.badges.append(entry.badge)

            ledger.append(entry.label, snapshot.coverage, result.timestamp)

        ledger.persist(self._store, history_key)

        logger.info("Pushing to coverage branch")
        self._store.commit_and_push()

        logger.info("Coverage successfully updated")
        return result
