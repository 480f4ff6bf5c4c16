"""Turn window commits into materialized change sets (phase 1)."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from gitspot.errors import AnalysisCancelled, DiffComputationError
from gitspot.extractors.git_backend import HistoryBackend
from gitspot.models import CommitRecord, DiffBaseline, HistoryWindow, LogEntry, SkippedCommit

logger = logging.getLogger(__name__)


def extract_changes(
    backend: HistoryBackend,
    entry: LogEntry,
    baseline: DiffBaseline = DiffBaseline.NEWEST_SNAPSHOT,
    reference: str | None = None,
) -> CommitRecord:
    """Diff one commit and wrap the result in a CommitRecord.

    With ``NEWEST_SNAPSHOT`` the commit's tree is diffed against the fixed
    ``reference`` tree, so the change set is the drift from the newest state
    rather than what the commit itself touched. With ``PREVIOUS_COMMIT`` the
    commit is diffed against its first parent.

    Raises:
        DiffComputationError: If the backend cannot diff the pair.
    """
    if baseline is DiffBaseline.NEWEST_SNAPSHOT:
        if reference is None:
            raise ValueError("NEWEST_SNAPSHOT baseline needs a reference revision")
        changes = [] if entry.hash == reference else backend.diff(entry.hash, reference)
    else:
        parent = entry.parents[0] if entry.parents else None
        changes = backend.diff(parent, entry.hash)

    return CommitRecord(
        hash=entry.hash,
        subject=entry.subject,
        committed_at=entry.committed_at,
        changes=tuple(changes),
    )


def materialize_commits(
    backend: HistoryBackend,
    window: HistoryWindow,
    baseline: DiffBaseline = DiffBaseline.NEWEST_SNAPSHOT,
    *,
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> tuple[tuple[CommitRecord, ...], list[SkippedCommit]]:
    """Extract every window commit's changes, keeping window order.

    Commits whose diff fails are returned as SkippedCommit instead of
    aborting the run.

    Raises:
        AnalysisCancelled: If ``cancel`` is set at a commit boundary.
    """
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}")
    if cancel is None:
        cancel = threading.Event()

    reference = window.reference if baseline is DiffBaseline.NEWEST_SNAPSHOT else None

    def extract(entry: LogEntry) -> CommitRecord | SkippedCommit:
        if cancel.is_set():
            raise AnalysisCancelled(f"cancelled before commit {entry.hash}")
        try:
            return extract_changes(backend, entry, baseline, reference)
        except DiffComputationError as exc:
            logger.warning("Skipping commit %s (%s): %s", entry.hash[:10], entry.subject, exc)
            return SkippedCommit(hash=entry.hash, subject=entry.subject, reason=exc.reason)

    if workers == 1:
        results = [extract(entry) for entry in window.commits]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            try:
                # map() yields in submission order, so window order is preserved
                results = list(executor.map(extract, window.commits))
            except BaseException:
                cancel.set()
                raise

    records = tuple(r for r in results if isinstance(r, CommitRecord))
    skipped = [r for r in results if isinstance(r, SkippedCommit)]

    logger.info(
        "Materialized %d commits (%d skipped, baseline=%s)",
        len(records),
        len(skipped),
        baseline.value,
    )
    return records, skipped
