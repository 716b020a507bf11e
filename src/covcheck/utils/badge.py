"""Coverage badge rendering through a static badge endpoint (shields.io)."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import requests

from covcheck.errors import BadgeFetchError
from covcheck.models.coverage import format_percent

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = 30
_HTTP_ERROR_MIN = 400

# Checked in order; the first threshold the coverage is below wins.
_COLOR_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (50.0, "red"),
    (75.0, "orange"),
    (95.0, "yellow"),
)
_TOP_COLOR = "green"


def badge_color(coverage: float) -> str:
    """Return the badge color for a coverage percentage."""
    for threshold, color in _COLOR_THRESHOLDS:
        if coverage < threshold:
            return color
    return _TOP_COLOR


def build_badge_url(
    coverage: float,
    label: str,
    *,
    endpoint: str = "https://img.shields.io/static/v1",
    style: str = "for-the-badge",
) -> str:
    """Build the static badge URL for ``coverage`` labelled ``label``."""
    query = urlencode(
        {
            "label": label,
            "message": f"{format_percent(coverage)}%",
            "color": badge_color(coverage),
            "style": style,
        }
    )
    return f"{endpoint}?{query}"


def fetch_badge(url: str) -> bytes:
    """Download a rendered badge.

    Raises:
        BadgeFetchError: If the endpoint is unreachable or answers with an error.
    """
    try:
        response = requests.get(url, timeout=_REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise BadgeFetchError(f"Badge request failed: {exc}") from exc
    if response.status_code >= _HTTP_ERROR_MIN:
        raise BadgeFetchError(f"Badge request failed with HTTP {response.status_code}: {url}")
    logger.debug("Fetched badge %s (%d bytes)", url, len(response.content))
    return response.content
