"""Code-move classification for commits.

A commit whose additions and deletions are both large and nearly equal most
likely relocates code rather than adding to it. The predicate is a pure
function of ``(additions, deletions, thresholds)`` so callers holding the raw
counts can re-run it whenever the thresholds change.
"""

from __future__ import annotations

from typing import Tuple

from .config import CodeMoveThresholds
from .errors import DataValidationError

DEFAULT_THRESHOLDS = CodeMoveThresholds()


def _check_counts(additions: int, deletions: int) -> None:
    if additions < 0 or deletions < 0:
        raise DataValidationError(
            f"Line counts must be non-negative: additions={additions}, deletions={deletions}"
        )


def code_move_ratio(additions: int, deletions: int) -> float:
    """Return the smaller of the two counts over the larger, in ``[0, 1]``.

    A commit that only adds or only deletes has a ratio of ``0``.
    """
    _check_counts(additions, deletions)
    if additions == 0 or deletions == 0:
        return 0.0
    return min(additions, deletions) / max(additions, deletions)


def is_code_move(
    additions: int,
    deletions: int,
    thresholds: CodeMoveThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """Flag a commit as a likely code move.

    Below the size threshold a commit is never a move, whatever its ratio.
    """
    return classify(additions, deletions, thresholds)[1]


def classify(
    additions: int,
    deletions: int,
    thresholds: CodeMoveThresholds = DEFAULT_THRESHOLDS,
) -> Tuple[float, bool]:
    """Return ``(code_move_ratio, is_code_move)`` for one commit."""
    ratio = code_move_ratio(additions, deletions)
    is_move = additions + deletions >= thresholds.size_threshold and ratio >= thresholds.ratio_threshold
    return ratio, is_move
