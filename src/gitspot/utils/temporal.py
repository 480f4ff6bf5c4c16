"""Temporal decay and lookback helpers for weighting commit history."""

from __future__ import annotations

import calendar
import math
import re
from datetime import datetime, timedelta, timezone

from gitspot.errors import ConfigError

# Steepness and centre of the logistic recency curve. Changing either changes
# every score, so they are fixed.
LOGISTIC_STEEPNESS = 12.0

_LOOKBACK_RE = re.compile(r"^(\d+)\s*([mwd])$")


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they can be compared with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def logistic_weight(t: float) -> float:
    """Logistic curve 1 / (1 + e^(-12t + 12)).

    ``t`` is normalized recency: 1.0 for the newest commit in the window
    (weight 0.5), 0.0 for the oldest (weight ~6.1e-6).
    """
    x = -LOGISTIC_STEEPNESS * t + LOGISTIC_STEEPNESS
    # Evaluate on the side that cannot overflow exp()
    if x >= 0:
        z = math.exp(-x)
        return z / (1.0 + z)
    return 1.0 / (1.0 + math.exp(x))


def decay_weight(
    commit_date: datetime,
    reference_date: datetime,
    oldest_date: datetime,
) -> float:
    """Weight of a commit relative to the analysis window.

    Args:
        commit_date: When the commit was made.
        reference_date: The "now" end of the window.
        oldest_date: Timestamp of the oldest commit in the window.

    Returns:
        Float in (0, 1) for commits inside the window.

    Raises:
        ValueError: If ``reference_date`` is not after ``oldest_date``.
    """
    commit_date = ensure_utc(commit_date)
    reference_date = ensure_utc(reference_date)
    oldest_date = ensure_utc(oldest_date)

    span = (reference_date - oldest_date).total_seconds()
    if span <= 0:
        raise ValueError("window span must be positive")
    age = (reference_date - commit_date).total_seconds()
    return logistic_weight(1.0 - age / span)


def parse_lookback(value: str) -> tuple[int, str]:
    """Parse a lookback like '6m', '2w' or '90d' into (amount, unit)."""
    m = _LOOKBACK_RE.match(value.strip().lower())
    if not m:
        raise ConfigError(f"Invalid lookback {value!r}: expected <n>m, <n>w or <n>d")
    amount = int(m.group(1))
    if amount <= 0:
        raise ConfigError(f"Invalid lookback {value!r}: must be positive")
    return amount, m.group(2)


def subtract_months(value: datetime, months: int) -> datetime:
    """Go back ``months`` calendar months, clamping the day to the month length."""
    index = value.year * 12 + (value.month - 1) - months
    year, month0 = divmod(index, 12)
    month = month0 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def window_start(now: datetime, lookback: str) -> datetime:
    """Start of the analysis window ending at ``now``."""
    amount, unit = parse_lookback(lookback)
    if unit == "m":
        return subtract_months(now, amount)
    if unit == "w":
        return now - timedelta(weeks=amount)
    return now - timedelta(days=amount)
