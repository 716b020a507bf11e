"""Tests for the coverage history ledger (memory/history.py)."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta, timezone

import pytest

from covcheck.errors import MalformedReportError
from covcheck.memory.history import HistoryLedger, iso_timestamp
from covcheck.models.coverage import HistoryEntry
from covcheck.store.memory import MemoryBlobStore

_HISTORY_KEY = "coverage-history.json"


def _store_with_history(history: object) -> MemoryBlobStore:
    return MemoryBlobStore({_HISTORY_KEY: json.dumps(history).encode("utf-8")})


# ── Timestamps ───────────────────────────────────────────────────


class TestIsoTimestamp:
    def test_millisecond_utc_layout(self) -> None:
        moment = datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=UTC)
        assert iso_timestamp(moment) == "2024-05-01T10:00:00.123Z"

    def test_converts_to_utc(self) -> None:
        moment = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert iso_timestamp(moment) == "2024-05-01T10:00:00.000Z"

    def test_defaults_to_now(self) -> None:
        stamp = iso_timestamp()
        assert stamp.endswith("Z")
        assert len(stamp) == len("2024-05-01T10:00:00.000Z")


# ── Loading ──────────────────────────────────────────────────────


class TestLoad:
    def test_absent_history_yields_empty_ledger(self) -> None:
        ledger = HistoryLedger.load(MemoryBlobStore(), _HISTORY_KEY)
        assert ledger.labels == []
        assert ledger.to_dict() == {}

    def test_loads_existing_series(self) -> None:
        store = _store_with_history(
            {"Unit": [{"time": "2024-05-01T10:00:00.000Z", "coverage": 80}]}
        )

        ledger = HistoryLedger.load(store, _HISTORY_KEY)

        assert ledger.labels == ["Unit"]
        assert ledger.series("Unit") == [
            HistoryEntry(time="2024-05-01T10:00:00.000Z", coverage=80.0)
        ]

    @pytest.mark.parametrize(
        "history",
        [
            [],
            {"Unit": {"time": "t", "coverage": 1}},
            {"Unit": [{"time": "t"}]},
            {"Unit": [{"time": "t", "coverage": "80"}]},
        ],
    )
    def test_malformed_history_raises(self, history: object) -> None:
        with pytest.raises(MalformedReportError):
            HistoryLedger.load(_store_with_history(history), _HISTORY_KEY)

    def test_invalid_json_raises(self) -> None:
        store = MemoryBlobStore({_HISTORY_KEY: b"{not json"})
        with pytest.raises(MalformedReportError, match="not valid JSON"):
            HistoryLedger.load(store, _HISTORY_KEY)


# ── Appending ────────────────────────────────────────────────────


class TestAppend:
    def test_append_is_additive(self) -> None:
        earlier = {"time": "2024-05-01T10:00:00.000Z", "coverage": 80.0}
        ledger = HistoryLedger.from_dict({"Unit": [earlier], "E2E": [earlier]})

        ledger.append("Unit", 81.5, "2024-05-02T10:00:00.000Z")

        assert ledger.to_dict() == {
            "Unit": [earlier, {"time": "2024-05-02T10:00:00.000Z", "coverage": 81.5}],
            "E2E": [earlier],
        }

    def test_append_creates_missing_series(self) -> None:
        ledger = HistoryLedger()
        entry = ledger.append("Unit", 70.0, "2024-05-02T10:00:00.000Z")
        assert ledger.series("Unit") == [entry]

    def test_second_append_for_label_raises(self) -> None:
        ledger = HistoryLedger()
        ledger.append("Unit", 70.0, "2024-05-02T10:00:00.000Z")
        with pytest.raises(ValueError, match="already appended"):
            ledger.append("Unit", 71.0, "2024-05-02T10:00:00.000Z")

    def test_series_returns_copy(self) -> None:
        ledger = HistoryLedger()
        ledger.append("Unit", 70.0, "2024-05-02T10:00:00.000Z")
        ledger.series("Unit").clear()
        assert len(ledger.series("Unit")) == 1


def test_persist_writes_whole_ledger() -> None:
    store = MemoryBlobStore()
    ledger = HistoryLedger()
    ledger.append("Unit", 70.0, "2024-05-02T10:00:00.000Z")

    ledger.persist(store, _HISTORY_KEY)

    assert json.loads(store.staged[_HISTORY_KEY]) == {
        "Unit": [{"time": "2024-05-02T10:00:00.000Z", "coverage": 70.0}]
    }
    assert store.committed == {}
