"""Lookup of coverage report adapters by format name."""

from __future__ import annotations

from typing import TYPE_CHECKING

from covcheck.adapters.clover import CloverAdapter
from covcheck.adapters.cobertura import CoberturaAdapter

if TYPE_CHECKING:
    from covcheck.adapters.base import CoverageReportAdapter

DEFAULT_FORMAT = "clover"

_ADAPTERS: dict[str, type[CoverageReportAdapter]] = {
    "clover": CloverAdapter,
    "cobertura": CoberturaAdapter,
}


def available_formats() -> list[str]:
    """Return the names of all supported report formats."""
    return sorted(_ADAPTERS)


def get_adapter(report_format: str = DEFAULT_FORMAT) -> CoverageReportAdapter:
    """Return an adapter instance for ``report_format``.

    Raises:
        ValueError: If the format is unknown.
    """
    try:
        adapter_cls = _ADAPTERS[report_format.strip().lower()]
    except KeyError as exc:
        raise ValueError(
            f"Unknown report format {report_format!r} "
            f"(expected one of: {', '.join(available_formats())})"
        ) from exc
    return adapter_cls()
