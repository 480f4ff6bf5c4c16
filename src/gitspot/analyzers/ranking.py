"""Rank accumulated hotspot scores."""

from __future__ import annotations

from typing import Mapping

from gitspot.models import RankedSpot, Ranking


def rank_hotspots(scores: Mapping[str, float]) -> Ranking:
    """Order files by descending score, breaking ties by path."""
    spots = sorted(
        (RankedSpot(path=path, score=score) for path, score in scores.items()),
        key=lambda s: (-s.score, s.path),
    )
    return Ranking(spots=tuple(spots))
