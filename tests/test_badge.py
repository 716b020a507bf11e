"""Tests for badge rendering (utils/badge.py)."""

from __future__ import annotations

from unittest import mock
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from covcheck.errors import BadgeFetchError
from covcheck.utils.badge import badge_color, build_badge_url, fetch_badge


@pytest.mark.parametrize(
    ("coverage", "color"),
    [
        (0.0, "red"),
        (49.999, "red"),
        (50.0, "orange"),
        (74.999, "orange"),
        (75.0, "yellow"),
        (94.999, "yellow"),
        (95.0, "green"),
        (100.0, "green"),
    ],
)
def test_badge_color_boundaries(coverage: float, color: str) -> None:
    assert badge_color(coverage) == color


def test_build_badge_url() -> None:
    url = build_badge_url(81.5, "Unit tests")

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://img.shields.io/static/v1"
    assert parse_qs(parts.query) == {
        "label": ["Unit tests"],
        "message": ["81.5%"],
        "color": ["yellow"],
        "style": ["for-the-badge"],
    }


def test_build_badge_url_custom_endpoint() -> None:
    url = build_badge_url(96.0, "E2E", endpoint="https://badges.example/v1", style="flat")
    assert url.startswith("https://badges.example/v1?")
    assert "style=flat" in url
    assert "color=green" in url


class TestFetchBadge:
    def test_returns_content(self) -> None:
        response = requests.Response()
        response.status_code = 200
        response._content = b"<svg/>"
        with mock.patch("covcheck.utils.badge.requests.get", return_value=response) as get:
            assert fetch_badge("https://img.shields.io/static/v1?x=1") == b"<svg/>"
        get.assert_called_once_with("https://img.shields.io/static/v1?x=1", timeout=30)

    def test_http_error_raises(self) -> None:
        response = requests.Response()
        response.status_code = 503
        with (
            mock.patch("covcheck.utils.badge.requests.get", return_value=response),
            pytest.raises(BadgeFetchError, match="HTTP 503"),
        ):
            fetch_badge("https://img.shields.io/static/v1")

    def test_network_error_raises(self) -> None:
        with (
            mock.patch(
                "covcheck.utils.badge.requests.get",
                side_effect=requests.ConnectionError("boom"),
            ),
            pytest.raises(BadgeFetchError, match="boom"),
        ):
            fetch_badge("https://img.shields.io/static/v1")
