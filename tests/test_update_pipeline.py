"""Tests for the update pipeline (pipelines/update.py)."""

from __future__ import annotations

import json
from pathlib import Path
from unittest import mock

import pytest

from covcheck.config import CheckerConfig, CoverageFileConfig, StoreConfig
from covcheck.errors import BadgeFetchError, StoreWriteError
from covcheck.models.coverage import CoverageSnapshot
from covcheck.pipelines.update import UpdatePipeline
from covcheck.store.memory import MemoryBlobStore

_NOW = "2024-05-02T10:00:00.000Z"
_EARLIER = {"time": "2024-05-01T10:00:00.000Z", "coverage": 80.0}
_FILES = (
    CoverageFileConfig(
        coverage="unit/clover.xml", summary="unit.json", label="Unit", badge="unit.svg"
    ),
    CoverageFileConfig(coverage="e2e/clover.xml", summary="e2e.json", label="E2E"),
)
_COVERAGES = {
    "unit.json": CoverageSnapshot.from_counts(total=100, covered=92),
    "e2e.json": CoverageSnapshot.from_counts(total=300, covered=150),
}


def _config(root: Path) -> CheckerConfig:
    return CheckerConfig(root=root, files=_FILES)


@pytest.fixture
def badge_fetcher() -> mock.Mock:
    return mock.Mock(return_value=b"<svg>badge</svg>")


def _pipeline(
    root: Path, store: MemoryBlobStore, badge_fetcher: mock.Mock
) -> UpdatePipeline:
    return UpdatePipeline(_config(root), store, badge_fetcher=badge_fetcher, clock=lambda: _NOW)


def test_writes_baselines_badges_and_history(tmp_path: Path, badge_fetcher: mock.Mock) -> None:
    history = {"Unit": [_EARLIER]}
    store = MemoryBlobStore({"coverage-history.json": json.dumps(history).encode("utf-8")})

    result = _pipeline(tmp_path, store, badge_fetcher).run_with(_COVERAGES)

    assert store.commit_count == 1
    assert store.staged == {}
    assert json.loads(store.committed["unit.json"]) == {
        "total": 100,
        "covered": 92,
        "coverage": 92.0,
    }
    assert json.loads(store.committed["e2e.json"]) == {
        "total": 300,
        "covered": 150,
        "coverage": 50.0,
    }
    assert store.committed["unit.svg"] == b"<svg>badge</svg>"
    assert json.loads(store.committed["coverage-history.json"]) == {
        "Unit": [_EARLIER, {"time": _NOW, "coverage": 92.0}],
        "E2E": [{"time": _NOW, "coverage": 50.0}],
    }
    assert result.badges == ["unit.svg"]
    assert result.timestamp == _NOW


def test_badge_url_uses_display_label(tmp_path: Path, badge_fetcher: mock.Mock) -> None:
    _pipeline(tmp_path, MemoryBlobStore(), badge_fetcher).run_with(_COVERAGES)

    badge_fetcher.assert_called_once()
    url = badge_fetcher.call_args[0][0]
    assert url.startswith("https://img.shields.io/static/v1?")
    assert "label=Unit" in url
    assert "message=92%25" in url
    assert "color=yellow" in url


def test_absent_history_is_bootstrapped(tmp_path: Path, badge_fetcher: mock.Mock) -> None:
    store = MemoryBlobStore()

    _pipeline(tmp_path, store, badge_fetcher).run_with(_COVERAGES)

    assert json.loads(store.committed["coverage-history.json"]) == {
        "Unit": [{"time": _NOW, "coverage": 92.0}],
        "E2E": [{"time": _NOW, "coverage": 50.0}],
    }


def test_custom_history_file(tmp_path: Path, badge_fetcher: mock.Mock) -> None:
    config = CheckerConfig(
        root=tmp_path, files=_FILES, store=StoreConfig(history_file="history/all.json")
    )
    store = MemoryBlobStore()

    UpdatePipeline(config, store, badge_fetcher=badge_fetcher, clock=lambda: _NOW).run_with(
        _COVERAGES
    )

    assert "history/all.json" in store.committed


def test_prepares_store_before_writing(tmp_path: Path, badge_fetcher: mock.Mock) -> None:
    store = mock.Mock(wraps=MemoryBlobStore())

    _pipeline(tmp_path, store, badge_fetcher).run_with(_COVERAGES)

    method_names = [name for name, _args, _kwargs in store.method_calls]
    assert method_names[0] == "prepare"
    assert method_names[-1] == "commit_and_push"


def test_badge_failure_aborts_before_commit(tmp_path: Path, badge_fetcher: mock.Mock) -> None:
    badge_fetcher.side_effect = BadgeFetchError("HTTP 503")
    store = MemoryBlobStore()

    with pytest.raises(BadgeFetchError):
        _pipeline(tmp_path, store, badge_fetcher).run_with(_COVERAGES)

    assert store.commit_count == 0
    assert store.committed == {}


def test_push_failure_propagates(tmp_path: Path, badge_fetcher: mock.Mock) -> None:
    store = MemoryBlobStore()
    with (
        mock.patch.object(store, "commit_and_push", side_effect=StoreWriteError("push")),
        pytest.raises(StoreWriteError),
    ):
        _pipeline(tmp_path, store, badge_fetcher).run_with(_COVERAGES)


def test_run_parses_reports(tmp_path: Path, badge_fetcher: mock.Mock) -> None:
    for name, (elements, covered) in {"unit": (100, 92), "e2e": (300, 150)}.items():
        report = tmp_path / name / "clover.xml"
        report.parent.mkdir()
        report.write_text(
            "<coverage><project>"
            f'<metrics elements="{elements}" coveredelements="{covered}"/>'
            "</project></coverage>",
            encoding="utf-8",
        )
    store = MemoryBlobStore()

    result = _pipeline(tmp_path, store, badge_fetcher).run()

    assert result.coverages == _COVERAGES
    assert store.commit_count == 1
