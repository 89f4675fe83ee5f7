"""Tests for the code-move classifier."""

import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gitstats.classifier import classify, code_move_ratio, is_code_move
from gitstats.config import CodeMoveThresholds
from gitstats.errors import DataValidationError


@pytest.mark.parametrize(
    "additions, deletions",
    [(0, 0), (1, 0), (0, 1), (3, 7), (7, 3), (1000, 999), (5, 5000)],
)
def test_code_move_ratio_is_between_zero_and_one(additions, deletions):
    """Verify the ratio always stays within [0, 1]."""
    assert 0.0 <= code_move_ratio(additions, deletions) <= 1.0


def test_code_move_ratio_zero_when_one_side_is_empty():
    """Verify add-only and delete-only commits have a zero ratio."""
    assert code_move_ratio(250, 0) == 0.0
    assert code_move_ratio(0, 250) == 0.0


def test_code_move_ratio_one_for_equal_counts():
    """Verify equal additions and deletions give a ratio of exactly 1."""
    assert code_move_ratio(42, 42) == 1.0


def test_code_move_ratio_is_symmetric():
    """Verify the ratio is min over max regardless of which side is larger."""
    assert code_move_ratio(300, 400) == pytest.approx(0.75)
    assert code_move_ratio(400, 300) == pytest.approx(0.75)


def test_is_code_move_false_below_size_threshold_even_when_balanced():
    """Verify small commits are never moves, even with a perfect ratio."""
    assert is_code_move(200, 200) is False
    assert is_code_move(249, 250) is False


def test_is_code_move_true_for_large_balanced_commit():
    """Verify a large, balanced commit is flagged."""
    assert is_code_move(250, 250) is True
    assert is_code_move(600, 500) is True


def test_is_code_move_false_for_large_unbalanced_commit():
    """Verify size alone is not enough."""
    assert is_code_move(900, 100) is False


def test_classify_honors_custom_thresholds():
    """Verify thresholds are read from the injected configuration."""
    thresholds = CodeMoveThresholds(size_threshold=10, ratio_threshold=0.5)

    ratio, is_move = classify(6, 4, thresholds)

    assert ratio == pytest.approx(4 / 6)
    assert is_move is True
    assert classify(6, 4)[1] is False


def test_negative_counts_raise_data_validation_error():
    """Verify malformed line counts are rejected."""
    with pytest.raises(DataValidationError):
        code_move_ratio(-1, 5)
    with pytest.raises(DataValidationError):
        is_code_move(5, -1)
