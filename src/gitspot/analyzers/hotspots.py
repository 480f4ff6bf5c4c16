"""Hotspot accumulation with logistic recency weighting (phase 2)."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Iterable

from gitspot.errors import AnalysisCancelled
from gitspot.models import CommitRecord, HotspotScore
from gitspot.utils.temporal import decay_weight, ensure_utc

logger = logging.getLogger(__name__)


class HotspotAccumulator:
    """Owns the path -> score mapping for one run."""

    def __init__(self, now: datetime, oldest: datetime) -> None:
        self.now = ensure_utc(now)
        self.oldest = ensure_utc(oldest)
        if (self.now - self.oldest).total_seconds() <= 0:
            raise ValueError("window span must be positive")
        self._spots: dict[str, HotspotScore] = {}

    def __len__(self) -> int:
        return len(self._spots)

    def add(self, record: CommitRecord) -> float:
        """Fold one commit in. Returns the weight it contributed per file."""
        weight = decay_weight(record.committed_at, self.now, self.oldest)
        for change in record.changes:
            # Deleted files do not score
            if change.is_delete:
                continue
            spot = self._spots.get(change.name)
            if spot is None:
                spot = self._spots[change.name] = HotspotScore(change.name)
            spot.score += weight
        return weight

    def scores(self) -> dict[str, float]:
        return {path: spot.score for path, spot in self._spots.items()}


def accumulate_hotspots(
    records: Iterable[CommitRecord],
    now: datetime,
    oldest: datetime,
    *,
    cancel: threading.Event | None = None,
) -> dict[str, float]:
    """Sum each commit's decay weight into every non-deleted file it touched.

    Args:
        records: Materialized commits, in any order.
        now: End of the analysis window.
        oldest: Timestamp of the oldest commit in the window.
        cancel: Checked before each commit.

    Returns:
        Mapping of file path to cumulative score.
    """
    accumulator = HotspotAccumulator(now, oldest)
    for record in records:
        if cancel is not None and cancel.is_set():
            raise AnalysisCancelled(f"cancelled before commit {record.hash}")
        accumulator.add(record)

    logger.info("Scored %d files", len(accumulator))
    return accumulator.scores()
