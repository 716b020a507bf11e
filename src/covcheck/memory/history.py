"""Append-only coverage history, one time series per report label.

The ledger lives in a single JSON object of the storage branch::

    {"Unit tests": [{"time": "2024-05-01T10:00:00.000Z", "coverage": 81.2}, ...]}

It is loaded once per update run, receives at most one entry per label, and
is written back whole.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from covcheck.errors import MalformedReportError
from covcheck.models.coverage import HistoryEntry

if TYPE_CHECKING:
    from covcheck.store.base import BlobStore

logger = logging.getLogger(__name__)


def iso_timestamp(now: datetime | None = None) -> str:
    """Return a UTC timestamp such as ``2024-05-01T10:00:00.000Z``."""
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_entry(label: str, raw: Any) -> HistoryEntry:
    if not isinstance(raw, dict) or "time" not in raw or "coverage" not in raw:
        raise MalformedReportError(f"History entry for {label!r} is malformed: {raw!r}")
    coverage = raw["coverage"]
    if isinstance(coverage, bool) or not isinstance(coverage, int | float):
        raise MalformedReportError(f"History coverage for {label!r} is not a number: {raw!r}")
    return HistoryEntry(time=str(raw["time"]), coverage=float(coverage))


class HistoryLedger:
    """In-memory view of the coverage history."""

    def __init__(self, series: dict[str, list[HistoryEntry]] | None = None) -> None:
        self._series: dict[str, list[HistoryEntry]] = {
            label: list(entries) for label, entries in (series or {}).items()
        }
        self._appended: set[str] = set()

    @classmethod
    def from_dict(cls, data: Any) -> HistoryLedger:
        """Build a ledger from its JSON form.

        Raises:
            MalformedReportError: If the data is not a mapping of label to entry list.
        """
        if not isinstance(data, dict):
            raise MalformedReportError("History must be a JSON object of label to entries")
        series: dict[str, list[HistoryEntry]] = {}
        for label, entries in data.items():
            if not isinstance(entries, list):
                raise MalformedReportError(f"History for {label!r} is not a list")
            series[str(label)] = [_parse_entry(str(label), raw) for raw in entries]
        return cls(series)

    @classmethod
    def load(cls, store: BlobStore, key: str) -> HistoryLedger:
        """Load the ledger from ``store``; an absent object yields an empty ledger.

        Raises:
            BaselineFetchError: If the store cannot be read.
            MalformedReportError: If the stored history is malformed.
        """
        data = store.get_json(key)
        if data is None:
            logger.info("No history found at %s, starting a new one", key)
            return cls()
        ledger = cls.from_dict(data)
        logger.info("Loaded history for %d label(s) from %s", len(ledger.labels), key)
        return ledger

    @property
    def labels(self) -> list[str]:
        """Labels that have at least one entry, in insertion order."""
        return list(self._series)

    def series(self, label: str) -> list[HistoryEntry]:
        """Return a copy of the entries recorded for ``label``."""
        return list(self._series.get(label, []))

    def append(self, label: str, coverage: float, timestamp: str) -> HistoryEntry:
        """Append one measurement to ``label``'s series, creating it if absent.

        Raises:
            ValueError: If ``label`` was already appended to in this ledger.
        """
        if label in self._appended:
            raise ValueError(f"History for {label!r} was already appended to in this run")
        entry = HistoryEntry(time=timestamp, coverage=coverage)
        self._series.setdefault(label, []).append(entry)
        self._appended.add(label)
        logger.debug("Appended %s to history of %s", coverage, label)
        return entry

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Return the JSON-serializable form of the whole ledger."""
        return {
            label: [entry.to_dict() for entry in entries]
            for label, entries in self._series.items()
        }

    def persist(self, store: BlobStore, key: str) -> None:
        """Stage the whole ledger under ``key``, replacing the previous object."""
        store.put_json(key, self.to_dict())
        logger.info("Wrote history for %d label(s) to %s", len(self._series), key)
