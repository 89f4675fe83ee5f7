"""Partitioned aggregation: local folds on a thread pool, then an exact merge.

Every grouping is an associative fold keyed by identity, so the input can be
split into contiguous slices, folded independently and merged through the
accumulators' ``merge``. The merged summaries equal a single-pass result.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, TypeVar

from .committers import fold_commits, merge_committer_states, summarize_committers
from .config import WorkHours
from .models import AnalyzedCommit, CommitterSummary, PullRequestRecord
from .pull_requests import (
    PullRequestAggregates,
    fold_authors,
    fold_commenters,
    fold_repositories,
    fold_reviewers,
    merge_author_states,
    merge_commenter_states,
    merge_repository_states,
    merge_reviewer_states,
)

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4

_T = TypeVar("_T")


def partition(records: Sequence[_T], parts: int) -> List[Sequence[_T]]:
    """Split ``records`` into at most ``parts`` contiguous, non-empty slices.

    Raises:
        ValueError: If ``parts`` is not positive.
    """
    if parts <= 0:
        raise ValueError("Partition count 'parts' must be greater than 0.")
    if not records:
        return []

    size, remainder = divmod(len(records), parts)
    slices: List[Sequence[_T]] = []
    start = 0
    for index in range(parts):
        end = start + size + (1 if index < remainder else 0)
        if end > start:
            slices.append(records[start:end])
        start = end
    return slices


def aggregate_committers_parallel(
    analyzed: Sequence[AnalyzedCommit],
    work_hours: Optional[WorkHours] = None,
    workers: int = DEFAULT_WORKERS,
) -> List[CommitterSummary]:
    """Fold commit partitions concurrently and merge them per email."""
    work_hours = work_hours or WorkHours()
    chunks = partition(analyzed, workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        states = list(executor.map(lambda chunk: fold_commits(chunk, work_hours), chunks))

    logger.debug(
        "Merged committer partitions",
        extra={"partitions": len(states), "commits_total": len(analyzed)},
    )
    return summarize_committers(merge_committer_states(states))


def aggregate_pull_requests_parallel(
    prs: Sequence[PullRequestRecord],
    workers: int = DEFAULT_WORKERS,
) -> PullRequestAggregates:
    """Run all four PR groupings over concurrent partitions and merge them."""
    chunks = partition(prs, workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        author_states = list(executor.map(fold_authors, chunks))
        reviewer_states = list(executor.map(fold_reviewers, chunks))
        commenter_states = list(executor.map(fold_commenters, chunks))
        repository_states = list(executor.map(fold_repositories, chunks))

    logger.debug(
        "Merged pull request partitions",
        extra={"partitions": len(chunks), "prs_total": len(prs)},
    )
    return PullRequestAggregates(
        authors=[acc.summarize() for acc in merge_author_states(author_states).values()],
        reviewers=[acc.summarize() for acc in merge_reviewer_states(reviewer_states).values()],
        commenters=[acc.summarize() for acc in merge_commenter_states(commenter_states).values()],
        repositories=[acc.summarize() for acc in merge_repository_states(repository_states).values()],
    )
