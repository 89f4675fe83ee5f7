"""Statistics helpers shared by the aggregators.

This module provides utilities for:
- Updating an average one observation at a time (``running_average``).
- Carrying a mergeable ``(total, count)`` mean across partitions (``RunningMean``).
- Zero-safe ratios and percentages, clamping and half-up rounding.
- Whole-hour durations and a compact hour formatter for reports.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def running_average(old_avg: float, n: int, value: float) -> float:
    """Fold one more observation into an average.

    ``n`` is the observation count *after* including ``value``. Applied to a
    sequence one value at a time this reproduces the arithmetic mean of the
    sequence, since ``old_avg * (n - 1)`` restores the previous sum.

    Raises:
        ValueError: If ``n`` is not positive.
    """
    if n <= 0:
        raise ValueError("Running average count 'n' must be greater than 0.")
    return (old_avg * (n - 1) + value) / n


@dataclass(slots=True)
class RunningMean:
    """Incrementally maintained mean that can also be merged with another.

    ``mean`` is updated with :func:`running_average` on every ``add``; the
    ``total`` is kept alongside so that partition-local means can be combined
    exactly through their ``(total, count)`` pairs.
    """

    count: int = 0
    total: float = 0.0
    mean: float = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.mean = running_average(self.mean, self.count, value)

    def merge(self, other: RunningMean) -> RunningMean:
        count = self.count + other.count
        total = self.total + other.total
        return RunningMean(count=count, total=total, mean=safe_divide(total, count))


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` when the denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def percentage(part: float, whole: float) -> float:
    """Return ``part / whole * 100``, or ``0.0`` for an empty whole."""
    return safe_divide(part, whole) * 100


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (``2.5 -> 3``).

    Python's built-in ``round`` uses banker's rounding, which would move
    scores sitting exactly on a half.
    """
    return int(math.floor(value + 0.5))


def hours_between(start: datetime, end: datetime) -> int:
    """Whole hours from ``start`` to ``end``, truncated toward zero."""
    return int((end - start).total_seconds() / 3600)


def format_hours(hours: Optional[float]) -> str:
    """Format a duration in hours as minutes, hours or days.

    Returns:
        ``"n/a"`` when ``hours`` is ``None``; otherwise ``"45m"``, ``"5.5h"``
        or ``"2.0d"`` depending on magnitude.
    """
    if hours is None:
        return "n/a"
    if hours < 1:
        return f"{hours * 60:.0f}m"
    if hours < 24:
        return f"{hours:.1f}h"
    return f"{hours / 24:.1f}d"
