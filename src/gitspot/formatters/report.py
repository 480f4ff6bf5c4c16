"""Format a hotspot report as plain text."""

from __future__ import annotations

from gitspot.models import HotspotReport


def format_report(report: HotspotReport, limit: int | None = None) -> str:
    """Render the window bounds, the top ``limit`` spots and the file count."""
    lines = [
        f"currentTime     : {report.now.isoformat()}",
        f"oldestCommitTime: {report.oldest.isoformat()}",
        f"baseline        : {report.baseline.value}",
        "",
    ]
    for spot in report.ranking.top(limit):
        lines.append(f"Score: {spot.score:6f} File: {spot.path}")
    lines.append("")
    lines.append(f"hotspot count: {report.ranking.total}")
    if report.skipped:
        lines.append(report.skipped_summary)
    return "\n".join(lines) + "\n"
