"""Format a hotspot report as JSON."""

from __future__ import annotations

import json

from gitspot.models import HotspotReport


def format_json(report: HotspotReport, limit: int | None = None) -> str:
    data = {
        "repo": report.repo_path,
        "ref": report.ref,
        "baseline": report.baseline.value,
        "window": {
            "now": report.now.isoformat(),
            "since": report.since.isoformat(),
            "oldest_commit": report.oldest.isoformat(),
            "commits": report.commits_in_window,
        },
        "total": report.ranking.total,
        "spots": [{"path": s.path, "score": s.score} for s in report.ranking.top(limit)],
        "skipped": [
            {"hash": c.hash, "subject": c.subject, "reason": c.reason} for c in report.skipped
        ],
    }
    return json.dumps(data, indent=2, sort_keys=True) + "\n"
