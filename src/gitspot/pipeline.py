"""Pipeline orchestrator: window, materialize, accumulate, rank, format."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

from gitspot.config import GitspotConfig
from gitspot.extractors.git_backend import HistoryBackend
from gitspot.models import HotspotReport

logger = logging.getLogger(__name__)


def run_pipeline(
    config: GitspotConfig,
    *,
    backend: HistoryBackend | None = None,
    now: datetime | None = None,
    cancel: threading.Event | None = None,
) -> HotspotReport:
    """Run the full hotspot analysis.

    Raises:
        RepositoryUnavailable: Before phase 1 if the repository or ref is bad.
        InsufficientHistory: If the window has fewer than two commits.
        AnalysisCancelled: If ``cancel`` is set during either phase.
    """
    from gitspot.analyzers.changes import materialize_commits
    from gitspot.analyzers.hotspots import accumulate_hotspots
    from gitspot.analyzers.ranking import rank_hotspots
    from gitspot.analyzers.window import select_window
    from gitspot.extractors.git_backend import GitBackend
    from gitspot.utils.temporal import window_start

    config.validate()
    if now is None:
        now = datetime.now(timezone.utc)
    if backend is None:
        backend = GitBackend(config.repo_path)

    analysis = config.analysis
    since = window_start(now, analysis.since)

    # ── Phase 1: select and materialize ─────────────────────────────────
    window = select_window(backend, now, since, ref=analysis.ref)
    records, skipped = materialize_commits(
        backend,
        window,
        analysis.baseline,
        workers=analysis.workers,
        cancel=cancel,
    )

    # ── Phase 2: weight and accumulate ──────────────────────────────────
    oldest = window.oldest.committed_at
    scores = accumulate_hotspots(records, window.now, oldest, cancel=cancel)
    ranking = rank_hotspots(scores)

    if skipped:
        logger.warning("%d of %d commits skipped", len(skipped), len(window))

    return HotspotReport(
        ranking=ranking,
        now=window.now,
        since=window.since,
        oldest=oldest,
        commits_in_window=len(window),
        baseline=analysis.baseline,
        skipped=skipped,
        repo_path=config.repo_path,
        ref=analysis.ref,
    )


def write_outputs(
    report: HotspotReport,
    formats: list[str],
    out_dir: Path,
    limit: int | None = None,
) -> list[str]:
    """Write formatted output files. Returns list of written paths."""
    from gitspot.formatters import format_html, format_json, format_report

    formatter_map = {
        "report": (format_report, "gitspot-report.txt"),
        "json": (format_json, "gitspot-report.json"),
        "html": (format_html, "gitspot-report.html"),
    }

    written = []
    for fmt in formats:
        if fmt not in formatter_map:
            logger.warning("Unknown output format %r, skipping", fmt)
            continue
        formatter, rel_path = formatter_map[fmt]
        content = formatter(report, limit)
        out_path = out_dir / rel_path
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(content, encoding="utf-8", errors="surrogateescape")
        written.append(str(out_path))

    return written
