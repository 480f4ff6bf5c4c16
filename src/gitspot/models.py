"""All shared data models for gitspot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# ── Git extraction ──────────────────────────────────────────────────────────


class ChangeAction(Enum):
    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"


class DiffBaseline(Enum):
    """What each commit is diffed against."""

    NEWEST_SNAPSHOT = "newest"  # fixed tree of the newest commit in the window
    PREVIOUS_COMMIT = "previous"  # the commit's first parent


@dataclass(frozen=True)
class ChangeEntry:
    """A single file-level difference between two trees."""

    action: ChangeAction
    from_path: str | None = None
    to_path: str | None = None

    def __post_init__(self) -> None:
        if not self.from_path and not self.to_path:
            raise ValueError("ChangeEntry needs a from_path or a to_path")

    @property
    def name(self) -> str:
        """Path the change is scored under: the pre-change name when known."""
        if self.from_path:
            return self.from_path
        assert self.to_path is not None
        return self.to_path

    @property
    def is_delete(self) -> bool:
        return self.action is ChangeAction.DELETE


@dataclass(frozen=True)
class LogEntry:
    """A commit as streamed from the history backend."""

    hash: str
    committed_at: datetime
    subject: str
    parents: tuple[str, ...] = ()


@dataclass(frozen=True)
class CommitRecord:
    """A commit materialized with its change set."""

    hash: str
    subject: str
    committed_at: datetime
    changes: tuple[ChangeEntry, ...] = ()


@dataclass(frozen=True)
class SkippedCommit:
    """A commit excluded from scoring because its diff failed."""

    hash: str
    subject: str
    reason: str


# ── Window ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HistoryWindow:
    """Commits in [since, now], newest first."""

    now: datetime
    since: datetime
    commits: tuple[LogEntry, ...]
    head: str = ""  # commit the walk started from

    def __len__(self) -> int:
        return len(self.commits)

    @property
    def newest(self) -> LogEntry:
        return self.commits[0]

    @property
    def oldest(self) -> LogEntry:
        return self.commits[-1]

    @property
    def reference(self) -> str:
        """Revision that NEWEST_SNAPSHOT diffs compare against."""
        # The resolved head wins over a commit with an equal or later timestamp
        if self.head and any(c.hash == self.head for c in self.commits):
            return self.head
        return self.newest.hash


# ── Hotspots ────────────────────────────────────────────────────────────────


@dataclass
class HotspotScore:
    """Running score for one file path."""

    path: str
    score: float = 0.0


@dataclass(frozen=True)
class RankedSpot:
    path: str
    score: float


@dataclass(frozen=True)
class Ranking:
    """Hotspots ordered by descending score, ties broken by path."""

    spots: tuple[RankedSpot, ...] = ()

    @property
    def total(self) -> int:
        """Number of distinct files that received a score."""
        return len(self.spots)

    def top(self, limit: int | None) -> tuple[RankedSpot, ...]:
        """Return exactly the first ``limit`` spots (all of them for None)."""
        if limit is None:
            return self.spots
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        return self.spots[:limit]


# ── Pipeline aggregates ─────────────────────────────────────────────────────


@dataclass
class HotspotReport:
    """Everything a run produced, ready for formatting."""

    ranking: Ranking
    now: datetime
    since: datetime
    oldest: datetime
    commits_in_window: int
    baseline: DiffBaseline
    skipped: list[SkippedCommit] = field(default_factory=list)
    repo_path: str = "."
    ref: str = "HEAD"

    @property
    def commits_analyzed(self) -> int:
        return self.commits_in_window - len(self.skipped)

    @property
    def skipped_summary(self) -> str:
        return f"{len(self.skipped)} of {self.commits_in_window} commits skipped"
