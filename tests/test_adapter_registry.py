"""Tests for the report adapter registry (adapters/registry.py)."""

from __future__ import annotations

import pytest

from covcheck.adapters import CloverAdapter, CoberturaAdapter
from covcheck.adapters.registry import DEFAULT_FORMAT, available_formats, get_adapter


def test_default_format_is_clover() -> None:
    assert DEFAULT_FORMAT == "clover"
    assert isinstance(get_adapter(), CloverAdapter)


def test_lookup_is_case_insensitive() -> None:
    assert isinstance(get_adapter(" Cobertura "), CoberturaAdapter)


def test_available_formats() -> None:
    assert available_formats() == ["clover", "cobertura"]


def test_unknown_format_raises() -> None:
    with pytest.raises(ValueError, match="Unknown report format 'lcov'"):
        get_adapter("lcov")
