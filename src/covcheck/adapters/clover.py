"""Clover XML coverage adapter.

Clover reports (PHPUnit, Jest's ``clover`` reporter, OpenClover) carry
project-wide totals on ``<coverage><project><metrics>``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from covcheck.adapters.base import CoverageReportAdapter, require_child, require_int_attr
from covcheck.errors import MalformedReportError
from covcheck.models.coverage import CoverageSnapshot

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)

_ROOT_TAG = "coverage"


def _load_root(report_file: Path) -> XmlElement:
    try:
        tree = ElementTree.parse(report_file)
    except (DefusedParseError, DefusedXmlException, OSError) as exc:
        raise MalformedReportError(f"Failed to parse Clover XML {report_file}: {exc}") from exc
    root: XmlElement = tree.getroot()
    return root


def _global_metrics(report_file: Path) -> XmlElement:
    root = _load_root(report_file)
    if root.tag != _ROOT_TAG:
        raise MalformedReportError(
            f"Wrong coverage file format in {report_file}: root is <{root.tag}>, "
            f"expected <{_ROOT_TAG}>"
        )
    project = require_child(root, "project", report_file)
    return require_child(project, "metrics", report_file)


class CloverAdapter(CoverageReportAdapter):
    """Reads project totals from a Clover XML report."""

    @property
    def name(self) -> str:
        return "clover"

    def detect(self, report_file: Path) -> bool:
        """Return True if the report has a Clover ``<project><metrics>`` node."""
        try:
            _global_metrics(report_file)
        except MalformedReportError:
            return False
        return True

    def parse_report_file(self, report_file: Path) -> CoverageSnapshot:
        """Parse ``elements`` and ``coveredelements`` from the project metrics."""
        metrics = _global_metrics(report_file)
        total = require_int_attr(metrics, "elements", report_file)
        covered = require_int_attr(metrics, "coveredelements", report_file)
        logger.info("Metrics gathered from clover file: %s", dict(metrics.attrib))
        return CoverageSnapshot.from_counts(total=total, covered=covered)
