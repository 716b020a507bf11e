"""Reporters for terminal output and pull-request comments."""

from covcheck.reporters.github_comment import GitHubCommentReporter
from covcheck.reporters.terminal import CLIReporter, reporter

__all__ = [
    "CLIReporter",
    "GitHubCommentReporter",
    "reporter",
]
