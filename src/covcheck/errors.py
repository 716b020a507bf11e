"""Error taxonomy shared by every covcheck component.

Every error is fatal to the run that raised it. The CLI catches
``CoverageCheckError`` at the command boundary and turns it into a single
diagnostic line and a non-zero exit code.
"""

from __future__ import annotations


class CoverageCheckError(Exception):
    """Base class for all covcheck failures."""


class ReportNotFoundError(CoverageCheckError):
    """Raised when a report path or glob matches no file."""


class MalformedReportError(CoverageCheckError):
    """Raised when a report or stored baseline does not have the expected shape."""


class BaselineFetchError(CoverageCheckError):
    """Raised when a baseline or history object cannot be fetched (other than 404)."""


class StoreWriteError(CoverageCheckError):
    """Raised when a version-control operation on the storage branch fails."""


class NotificationError(CoverageCheckError):
    """Raised when listing, creating or updating the managed comment fails."""


class BadgeFetchError(CoverageCheckError):
    """Raised when the badge-rendering endpoint cannot produce a badge."""
