"""Cobertura XML coverage adapter (coverage.py ``xml``, gcovr, Istanbul ``cobertura``)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from covcheck.adapters.base import CoverageReportAdapter, require_int_attr
from covcheck.errors import MalformedReportError
from covcheck.models.coverage import CoverageSnapshot

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement


logger = logging.getLogger(__name__)


def _load_coverage_root(report_file: Path) -> XmlElement:
    try:
        tree = ElementTree.parse(report_file)
    except (DefusedParseError, DefusedXmlException, OSError) as exc:
        raise MalformedReportError(f"Failed to parse Cobertura XML {report_file}: {exc}") from exc
    root: XmlElement = tree.getroot()
    if root.tag != "coverage" or root.get("lines-valid") is None:
        raise MalformedReportError(
            f"Wrong coverage file format in {report_file}: no Cobertura <coverage lines-valid>"
        )
    return root


class CoberturaAdapter(CoverageReportAdapter):
    """Reads line totals from the root of a Cobertura XML report."""

    @property
    def name(self) -> str:
        return "cobertura"

    def detect(self, report_file: Path) -> bool:
        try:
            _load_coverage_root(report_file)
        except MalformedReportError:
            return False
        return True

    def parse_report_file(self, report_file: Path) -> CoverageSnapshot:
        root = _load_coverage_root(report_file)
        total = require_int_attr(root, "lines-valid", report_file)
        covered = require_int_attr(root, "lines-covered", report_file)
        logger.info("Metrics gathered from cobertura file: total=%d covered=%d", total, covered)
        return CoverageSnapshot.from_counts(total=total, covered=covered)
