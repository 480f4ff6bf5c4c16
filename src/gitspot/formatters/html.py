"""Format a hotspot report as a standalone HTML page."""

from __future__ import annotations

from html import escape

from gitspot.models import HotspotReport, RankedSpot

_CSS = """\
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
    background: #0d1117;
    color: #c9d1d9;
    line-height: 1.6;
    padding: 2rem;
    max-width: 960px;
    margin: 0 auto;
}
header {
    border-bottom: 1px solid #21262d;
    padding-bottom: 1.5rem;
    margin-bottom: 2rem;
}
header h1 {
    color: #e6edf3;
    font-size: 1.75rem;
    font-weight: 600;
    margin-bottom: 0.5rem;
}
header .meta {
    color: #8b949e;
    font-size: 0.875rem;
}
header .meta span { margin-right: 1.5rem; }
table {
    width: 100%;
    border-collapse: collapse;
    background: #161b22;
    border: 1px solid #21262d;
    border-radius: 8px;
}
th, td {
    text-align: left;
    padding: 0.4rem 0.75rem;
    border-bottom: 1px solid #21262d;
    font-size: 0.875rem;
}
th { color: #8b949e; font-weight: 600; }
td.rank, td.score { font-family: "SFMono-Regular", Consolas, "Liberation Mono", Menlo, monospace; }
td.path code { color: #79c0ff; }
.bar {
    display: inline-block;
    height: 0.5rem;
    background: #ff4d4f;
    border-radius: 2px;
}
.skipped {
    color: #faad14;
    font-size: 0.85rem;
    margin-top: 1rem;
}
.empty-state {
    text-align: center;
    color: #8b949e;
    padding: 3rem 1rem;
    font-size: 1rem;
}
"""


def _render_row(rank: int, spot: RankedSpot, top_score: float) -> str:
    width = int(round(100 * spot.score / top_score)) if top_score > 0 else 0
    return "\n".join(
        [
            "<tr>",
            f'  <td class="rank">{rank}</td>',
            f'  <td class="score">{spot.score:.6f}</td>',
            f'  <td><span class="bar" style="width: {width}px"></span></td>',
            f'  <td class="path"><code>{escape(spot.path)}</code></td>',
            "</tr>",
        ]
    )


def format_html(report: HotspotReport, limit: int | None = None) -> str:
    """Format a HotspotReport as a standalone HTML report."""
    spots = report.ranking.top(limit)

    meta_spans = [
        f"<span>Window {escape(report.since.date().isoformat())} .. {escape(report.now.date().isoformat())}</span>",
        f"<span>{report.commits_analyzed} commits analyzed</span>",
        f"<span>{report.ranking.total} files scored</span>",
        f"<span>baseline: {escape(report.baseline.value)}</span>",
    ]

    body_parts: list[str] = []

    body_parts.append("<header>")
    body_parts.append("  <h1>gitspot Hotspots</h1>")
    body_parts.append(f'  <div class="meta">{" ".join(meta_spans)}</div>')
    body_parts.append("</header>")

    if not spots:
        body_parts.append('<div class="empty-state">No hotspots to display.</div>')
    else:
        top_score = spots[0].score
        body_parts.append("<table>")
        body_parts.append("<tr><th>#</th><th>Score</th><th></th><th>File</th></tr>")
        for rank, spot in enumerate(spots, start=1):
            body_parts.append(_render_row(rank, spot, top_score))
        body_parts.append("</table>")

    if report.skipped:
        body_parts.append(f'<div class="skipped">{escape(report.skipped_summary)}</div>')

    body_html = "\n".join(body_parts)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>gitspot Hotspots</title>
<style>
{_CSS}</style>
</head>
<body>
{body_html}
</body>
</html>
"""
