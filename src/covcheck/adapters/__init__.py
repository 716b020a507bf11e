"""Coverage report adapters."""

from covcheck.adapters.base import CoverageReportAdapter, resolve_report_path
from covcheck.adapters.clover import CloverAdapter
from covcheck.adapters.cobertura import CoberturaAdapter
from covcheck.adapters.registry import DEFAULT_FORMAT, available_formats, get_adapter

__all__ = [
    "DEFAULT_FORMAT",
    "CloverAdapter",
    "CoberturaAdapter",
    "CoverageReportAdapter",
    "available_formats",
    "get_adapter",
    "resolve_report_path",
]
