"""Output formatters for hotspot reports."""

from gitspot.formatters.html import format_html
from gitspot.formatters.json_report import format_json
from gitspot.formatters.report import format_report

__all__ = [
    "format_html",
    "format_json",
    "format_report",
]
