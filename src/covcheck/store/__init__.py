"""Baseline datastores."""

from covcheck.store.base import BlobStore
from covcheck.store.git_branch import GitBranchStore
from covcheck.store.memory import MemoryBlobStore

__all__ = [
    "BlobStore",
    "GitBranchStore",
    "MemoryBlobStore",
]
