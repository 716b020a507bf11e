"""Base class and shared helpers for coverage report adapters."""

from __future__ import annotations

import glob
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from covcheck.errors import MalformedReportError, ReportNotFoundError

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element as XmlElement

    from covcheck.models.coverage import CoverageSnapshot

logger = logging.getLogger(__name__)


def resolve_report_path(pattern: str, root: Path) -> Path:
    """Resolve a report path or glob relative to ``root``.

    When several files match, the first one in sorted order wins.

    Raises:
        ReportNotFoundError: If the pattern matches no file.
    """
    full_pattern = os.path.join(glob.escape(str(root)), pattern)
    matches = sorted(p for p in glob.glob(full_pattern, recursive=True) if Path(p).is_file())
    if not matches:
        raise ReportNotFoundError(f"Coverage file not found: {pattern}")
    if len(matches) > 1:
        logger.debug("Pattern %s matched %d files, using %s", pattern, len(matches), matches[0])
    return Path(matches[0])


def require_child(element: XmlElement, tag: str, source: Path) -> XmlElement:
    """Return the direct child ``tag`` of ``element`` or fail."""
    child = element.find(tag)
    if child is None:
        raise MalformedReportError(
            f"Wrong coverage file format in {source}: <{element.tag}> has no <{tag}> element"
        )
    return child


def require_int_attr(element: XmlElement, key: str, source: Path) -> int:
    """Return the integer attribute ``key`` of ``element`` or fail."""
    value = element.get(key)
    if value is None:
        raise MalformedReportError(
            f"Wrong coverage file format in {source}: <{element.tag}> has no '{key}' attribute"
        )
    try:
        return int(value)
    except ValueError as exc:
        raise MalformedReportError(
            f"Wrong coverage file format in {source}: '{key}' is not an integer ({value!r})"
        ) from exc


class CoverageReportAdapter(ABC):
    """Abstract base class for coverage report formats.

    Each concrete adapter knows how to read one report format and reduce it
    to a single aggregate ``CoverageSnapshot``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Report format identifier (e.g. 'clover', 'cobertura')."""

    @abstractmethod
    def detect(self, report_file: Path) -> bool:
        """Return True if ``report_file`` looks like a report in this format."""

    @abstractmethod
    def parse_report_file(self, report_file: Path) -> CoverageSnapshot:
        """Parse a report file into a snapshot.

        Raises:
            MalformedReportError: If the report is unreadable or lacks the expected nodes.
        """

    def parse(self, pattern: str, root: Path) -> CoverageSnapshot:
        """Resolve ``pattern`` under ``root`` and parse the matched report."""
        return self.parse_report_file(resolve_report_path(pattern, root))
