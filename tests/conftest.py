"""Shared fixtures for gitspot tests."""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

import pytest

from gitspot.errors import DiffComputationError, RepositoryUnavailable
from gitspot.models import ChangeAction, ChangeEntry, LogEntry

BASE = datetime(2026, 1, 1, tzinfo=timezone.utc)
NOW = BASE + timedelta(days=100)


class FakeBackend:
    """In-memory HistoryBackend.

    ``diffs`` maps (from_rev, to_rev) to change lists. A pair listed in
    ``failing`` raises DiffComputationError.
    """

    def __init__(
        self,
        commits: list[LogEntry],
        diffs: dict[tuple[str | None, str], list[ChangeEntry]] | None = None,
        failing: set[tuple[str | None, str]] | None = None,
        refs: dict[str, str] | None = None,
    ) -> None:
        self.commits = commits
        self.diffs = diffs or {}
        self.failing = failing or set()
        self.refs = refs if refs is not None else ({"HEAD": commits[0].hash} if commits else {"HEAD": "0" * 40})
        self.diff_calls: list[tuple[str | None, str]] = []

    def resolve(self, ref: str) -> str:
        if ref not in self.refs:
            raise RepositoryUnavailable("fake", f"cannot resolve reference {ref!r}")
        return self.refs[ref]

    def iter_log(self, ref: str, since: datetime, until: datetime) -> Iterator[LogEntry]:
        yield from self.commits

    def diff(self, from_rev: str | None, to_rev: str) -> list[ChangeEntry]:
        self.diff_calls.append((from_rev, to_rev))
        if (from_rev, to_rev) in self.failing:
            raise DiffComputationError(from_rev, to_rev, "object not found")
        return list(self.diffs.get((from_rev, to_rev), []))


def modify(path: str) -> ChangeEntry:
    return ChangeEntry(ChangeAction.MODIFY, path, path)


def add(path: str) -> ChangeEntry:
    return ChangeEntry(ChangeAction.ADD, None, path)


def delete(path: str) -> ChangeEntry:
    return ChangeEntry(ChangeAction.DELETE, path, None)


def rename(old: str, new: str) -> ChangeEntry:
    return ChangeEntry(ChangeAction.RENAME, old, new)


@pytest.fixture
def sample_backend() -> FakeBackend:
    """Four commits over 100 days, newest first, diffed against the newest."""
    commits = [
        LogEntry("d" * 40, BASE + timedelta(days=100), "refactor api", ("c" * 40,)),
        LogEntry("c" * 40, BASE + timedelta(days=90), "fix login", ("b" * 40,)),
        LogEntry("b" * 40, BASE + timedelta(days=50), "add profile", ("a" * 40,)),
        LogEntry("a" * 40, BASE, "initial", ()),
    ]
    newest = "d" * 40
    diffs = {
        ("c" * 40, newest): [modify("src/api.py")],
        ("b" * 40, newest): [modify("src/api.py"), modify("src/login.py")],
        ("a" * 40, newest): [
            modify("src/api.py"),
            modify("src/login.py"),
            delete("src/legacy.py"),
            add("src/profile.py"),
        ],
    }
    return FakeBackend(commits, diffs)


# ── Real git repositories ───────────────────────────────────────────────────

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(repo: Path, *args: str, date: datetime | None = None) -> str:
    env = {
        "PATH": os.environ.get("PATH", ""),
        "HOME": str(repo),
        "GIT_CONFIG_NOSYSTEM": "1",
        "GIT_AUTHOR_NAME": "Test",
        "GIT_AUTHOR_EMAIL": "test@test.com",
        "GIT_COMMITTER_NAME": "Test",
        "GIT_COMMITTER_EMAIL": "test@test.com",
    }
    if date is not None:
        env["GIT_AUTHOR_DATE"] = f"{int(date.timestamp())} +0000"
        env["GIT_COMMITTER_DATE"] = f"{int(date.timestamp())} +0000"
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=repo,
        env=env,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Callable[..., str]:
    """Return a committer: commit(files, date, message, remove=(), moves=()) -> hash."""
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")

    def commit(
        files: dict[str, str],
        date: datetime,
        message: str,
        remove: tuple[str, ...] = (),
        moves: tuple[tuple[str, str], ...] = (),
    ) -> str:
        for old, new in moves:
            _git(repo, "mv", old, new)
        for path in remove:
            _git(repo, "rm", "-q", path)
        for path, content in files.items():
            target = repo / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            _git(repo, "add", path)
        _git(repo, "commit", "-q", "--allow-empty", "-m", message, date=date)
        return _git(repo, "rev-parse", "HEAD").strip()

    commit.path = repo  # type: ignore[attr-defined]
    return commit
