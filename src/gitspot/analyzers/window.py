"""Select the bounded, time-ordered commits to analyze."""

from __future__ import annotations

import logging
from datetime import datetime

from gitspot.errors import InsufficientHistory
from gitspot.extractors.git_backend import HistoryBackend
from gitspot.models import HistoryWindow
from gitspot.utils.temporal import ensure_utc

logger = logging.getLogger(__name__)

MIN_COMMITS = 2


def select_window(
    backend: HistoryBackend,
    now: datetime,
    since: datetime,
    ref: str = "HEAD",
) -> HistoryWindow:
    """Collect commits reachable from ``ref`` committed in [since, now].

    Commits are ordered newest first by committer time, ties broken by hash.

    Raises:
        RepositoryUnavailable: If the backend cannot resolve ``ref``.
        InsufficientHistory: If fewer than two commits fall in the window, or
            the window has no time span to normalize against.
    """
    now = ensure_utc(now)
    since = ensure_utc(since)
    head = backend.resolve(ref)

    commits = [
        entry
        for entry in backend.iter_log(head, since, now)
        if since <= ensure_utc(entry.committed_at) <= now
    ]
    commits.sort(key=lambda c: c.hash)
    commits.sort(key=lambda c: ensure_utc(c.committed_at), reverse=True)

    if len(commits) < MIN_COMMITS:
        raise InsufficientHistory(len(commits))

    oldest = ensure_utc(commits[-1].committed_at)
    if (now - oldest).total_seconds() <= 0:
        raise InsufficientHistory(len(commits), "all commits in window are at the window end")

    logger.info(
        "Window %s .. %s holds %d commits (oldest %s)",
        since.isoformat(),
        now.isoformat(),
        len(commits),
        oldest.isoformat(),
    )
    return HistoryWindow(now=now, since=since, commits=tuple(commits), head=head)
