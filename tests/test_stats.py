"""Tests for running averages, ratios, rounding and duration helpers."""

import random
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gitstats.stats import (
    RunningMean,
    clamp,
    format_hours,
    hours_between,
    percentage,
    round_half_up,
    running_average,
    safe_divide,
)


def test_running_average_reproduces_arithmetic_mean():
    """Verify folding values one at a time yields the plain arithmetic mean."""
    rng = random.Random(7)
    for _ in range(50):
        values = [rng.uniform(-1000, 1000) for _ in range(rng.randint(1, 60))]
        average = 0.0
        for n, value in enumerate(values, start=1):
            average = running_average(average, n, value)
        assert average == pytest.approx(sum(values) / len(values))


def test_running_average_rejects_non_positive_count():
    """Verify the post-increment count must be at least 1."""
    with pytest.raises(ValueError):
        running_average(0.0, 0, 5.0)


def test_running_mean_merge_matches_single_pass():
    """Verify merging two partial means through (total, count) equals one pass."""
    values = [3.0, 9.0, 1.5, 22.0, 7.0, 0.0, 4.0]
    whole = RunningMean()
    left = RunningMean()
    right = RunningMean()
    for value in values:
        whole.add(value)
    for value in values[:3]:
        left.add(value)
    for value in values[3:]:
        right.add(value)

    merged = left.merge(right)

    assert merged.count == whole.count
    assert merged.total == pytest.approx(whole.total)
    assert merged.mean == pytest.approx(whole.mean)


def test_running_mean_empty_defaults_to_zero():
    """Verify an empty mean and a merge of empty means are both 0."""
    assert RunningMean().mean == 0.0
    assert RunningMean().merge(RunningMean()).mean == 0.0


def test_safe_divide_and_percentage_zero_denominator():
    """Verify zero denominators short-circuit to the default."""
    assert safe_divide(5, 0) == 0.0
    assert safe_divide(5, 0, default=-1.0) == -1.0
    assert percentage(3, 0) == 0.0
    assert percentage(1, 4) == pytest.approx(25.0)


def test_round_half_up_differs_from_bankers_rounding():
    """Verify halves always round up."""
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(46.666) == 47
    assert round_half_up(46.4) == 46


def test_clamp_bounds_value():
    """Verify clamping to an inclusive range."""
    assert clamp(120, 0, 100) == 100
    assert clamp(-3, 0, 100) == 0
    assert clamp(42, 0, 100) == 42


def test_hours_between_truncates_toward_zero():
    """Verify partial hours are dropped in both directions."""
    start = datetime(2024, 3, 1, 10, 0)
    assert hours_between(start, datetime(2024, 3, 1, 12, 59)) == 2
    assert hours_between(start, datetime(2024, 3, 2, 10, 0)) == 24
    assert hours_between(start, datetime(2024, 3, 1, 8, 30)) == -1


def test_format_hours_handles_none_minutes_hours_and_days():
    """Verify duration formatting picks a unit by magnitude."""
    assert format_hours(None) == "n/a"
    assert format_hours(0.75) == "45m"
    assert format_hours(5.5) == "5.5h"
    assert format_hours(48) == "2.0d"
