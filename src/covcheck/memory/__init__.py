"""Persistent coverage history."""

from covcheck.memory.history import HistoryLedger, iso_timestamp

__all__ = ["HistoryLedger", "iso_timestamp"]
