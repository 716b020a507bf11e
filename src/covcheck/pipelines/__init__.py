"""Check and update pipelines."""

from covcheck.pipelines.check import CheckPipeline, CheckResult
from covcheck.pipelines.update import UpdatePipeline, UpdateResult

__all__ = [
    "CheckPipeline",
    "CheckResult",
    "UpdatePipeline",
    "UpdateResult",
]
