"""Coverage snapshot and history entry models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from covcheck.errors import MalformedReportError

PERCENT_PLACES = Decimal("0.001")


def format_percent(value: float) -> str:
    """Render a percentage without trailing zeros (``80``, ``92.5``, ``79.123``)."""
    return format(Decimal(str(value)).normalize(), "f")


def compute_percentage(total: int, covered: int) -> float:
    """Return ``100 * covered / total`` rounded to 3 decimals.

    Rounding is ROUND_HALF_UP (ties away from zero), computed in decimal
    arithmetic on the integer counts.

    Raises:
        MalformedReportError: If ``total`` is zero, since the ratio is undefined.
    """
    if total == 0:
        raise MalformedReportError("Coverage total is zero; percentage is undefined")
    with localcontext() as ctx:
        ctx.prec = 50
        ratio = Decimal(100 * covered) / Decimal(total)
        return float(ratio.quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CoverageSnapshot:
    """A single point-in-time coverage measurement."""

    total: int
    """Number of instrumentable elements."""

    covered: int
    """Number of covered elements."""

    coverage: float
    """Coverage percentage, rounded to 3 decimals."""

    @classmethod
    def from_counts(cls, total: int, covered: int) -> CoverageSnapshot:
        """Build a snapshot from raw counts, validating them.

        Raises:
            MalformedReportError: On negative counts, ``covered > total`` or ``total == 0``.
        """
        if total < 0 or covered < 0:
            raise MalformedReportError(
                f"Coverage counts must be non-negative (total={total}, covered={covered})"
            )
        if covered > total:
            raise MalformedReportError(
                f"Covered elements exceed total elements (total={total}, covered={covered})"
            )
        return cls(total=total, covered=covered, coverage=compute_percentage(total, covered))

    @classmethod
    def from_dict(cls, data: Any) -> CoverageSnapshot:
        """Rebuild a snapshot from its persisted JSON form.

        ``coverage`` is taken as stored so older baselines compare exactly as
        they were written.

        Raises:
            MalformedReportError: If a field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise MalformedReportError(f"Expected a JSON object, got {type(data).__name__}")
        try:
            total = data["total"]
            covered = data["covered"]
            coverage = data["coverage"]
        except KeyError as exc:
            raise MalformedReportError(f"Snapshot is missing field {exc}") from exc

        if isinstance(total, bool) or isinstance(covered, bool):
            raise MalformedReportError("Snapshot counts must be integers")
        if not isinstance(total, int) or not isinstance(covered, int):
            raise MalformedReportError("Snapshot counts must be integers")
        if isinstance(coverage, bool) or not isinstance(coverage, int | float):
            raise MalformedReportError("Snapshot coverage must be a number")

        return cls(total=total, covered=covered, coverage=float(coverage))

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable form persisted in the storage branch."""
        return asdict(self)


@dataclass(frozen=True)
class HistoryEntry:
    """One measurement in a ledger series."""

    time: str
    """ISO-8601 timestamp of the measurement."""

    coverage: float
    """Coverage percentage at that time."""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable form."""
        return {"time": self.time, "coverage": self.coverage}
