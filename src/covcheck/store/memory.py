"""In-memory ``BlobStore`` with staged and committed maps, used by tests."""

from __future__ import annotations

import logging

from covcheck.store.base import BlobStore

logger = logging.getLogger(__name__)


class MemoryBlobStore(BlobStore):
    """Dictionary-backed store; ``commit_and_push`` publishes staged writes."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.committed: dict[str, bytes] = dict(initial or {})
        self.staged: dict[str, bytes] = {}
        self.commit_count = 0

    def get(self, key: str) -> bytes | None:
        if key in self.staged:
            return self.staged[key]
        return self.committed.get(key)

    def put(self, key: str, data: bytes) -> None:
        self.staged[key] = data

    def commit_and_push(self) -> None:
        self.committed.update(self.staged)
        self.staged.clear()
        self.commit_count += 1
        logger.debug("Committed %d keys", len(self.committed))
