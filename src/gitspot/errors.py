"""Exception hierarchy for gitspot."""

from __future__ import annotations


class GitspotError(Exception):
    """Base class for all gitspot errors."""


class RepositoryUnavailable(GitspotError):
    """The repository cannot be opened or the reference cannot be resolved."""

    def __init__(self, repo_path: str, reason: str) -> None:
        super().__init__(f"Repository unavailable: {repo_path} ({reason})")
        self.repo_path = repo_path
        self.reason = reason


class InsufficientHistory(GitspotError):
    """The analysis window holds too few commits to normalize weights."""

    def __init__(self, commit_count: int, reason: str | None = None) -> None:
        if reason is None:
            reason = f"found {commit_count} commit(s) in window, need at least 2"
        super().__init__(f"Insufficient history: {reason}")
        self.commit_count = commit_count
        self.reason = reason


class DiffComputationError(GitspotError):
    """The backend could not diff two revisions."""

    def __init__(self, from_rev: str | None, to_rev: str, reason: str) -> None:
        super().__init__(f"Cannot diff {from_rev or '<empty tree>'}..{to_rev}: {reason}")
        self.from_rev = from_rev
        self.to_rev = to_rev
        self.reason = reason


class AnalysisCancelled(GitspotError):
    """The run was cancelled at a commit boundary."""


class ConfigError(GitspotError):
    """A configuration value is invalid."""
