"""Capability interface for the baseline datastore."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from covcheck.errors import MalformedReportError

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Append-only key/value store with an atomic multi-key commit.

    Writes made with ``put`` become durable only when ``commit_and_push``
    runs; a failed run leaves whatever was already pushed in place.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the stored bytes for ``key``, or None if the key does not exist.

        Raises:
            BaselineFetchError: If the store cannot be read.
        """

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Stage ``data`` under ``key``.

        Raises:
            StoreWriteError: If the value cannot be staged.
        """

    @abstractmethod
    def commit_and_push(self) -> None:
        """Make every staged value durable in one commit.

        Raises:
            StoreWriteError: If the commit or push fails.
        """

    def get_json(self, key: str) -> Any | None:
        """Return the decoded JSON value of ``key``, or None if absent.

        Raises:
            MalformedReportError: If the stored value is not valid JSON.
        """
        data = self.get(key)
        if data is None:
            return None
        try:
            return json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedReportError(f"Stored {key} is not valid JSON: {exc}") from exc

    def prepare(self) -> None:
        """Get ready for writes. Stores that need no setup keep this no-op.

        Raises:
            StoreWriteError: If the store cannot be made writable.
        """
        logger.debug("%s needs no preparation", type(self).__name__)

    def put_json(self, key: str, value: Any) -> None:
        """Stage ``value`` as compact JSON under ``key``."""
        self.put(key, json.dumps(value, separators=(",", ":")).encode("utf-8"))
