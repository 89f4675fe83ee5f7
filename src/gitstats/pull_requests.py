"""Pull request relationship aggregation.

The same PR set is grouped four ways: by author, by reviewer (anyone who
approved or rejected), by commenter (anyone who posted a message) and by
repository. Averages are kept as :class:`~gitstats.stats.RunningMean` values:
updated one PR at a time with the running-average formula, and merged across
partitions through their ``(total, count)`` pairs.

Durations are whole hours from PR creation, truncated toward zero.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from .errors import DataValidationError
from .models import (
    CommenterStats,
    PrAuthorStats,
    PullRequestRecord,
    RepositoryPrStats,
    ReviewerStats,
)
from .stats import RunningMean, hours_between, safe_divide

logger = logging.getLogger(__name__)

MOST_ACTIVE_LIMIT = 5

_Acc = TypeVar("_Acc", "AuthorAccumulator", "ReviewerAccumulator", "CommenterAccumulator", "RepositoryAccumulator")


def _validate(pr: PullRequestRecord) -> None:
    if pr.created_at is None:
        raise DataValidationError(
            f"Pull request by '{pr.author}' in '{pr.repository_name}' is missing its creation time."
        )
    for message in pr.messages:
        if message.timestamp is None:
            raise DataValidationError(
                f"Pull request by '{pr.author}' in '{pr.repository_name}' has a message without a timestamp."
            )


def first_response_hours(pr: PullRequestRecord) -> Optional[int]:
    """Hours from creation to the first message, or ``None`` without messages."""
    if not pr.messages:
        return None
    return hours_between(pr.created_at, pr.messages[0].timestamp)


def time_to_merge_hours(pr: PullRequestRecord) -> Optional[int]:
    """Approximate merge latency as creation to the last message of an approved PR.

    ``None`` when the PR has no approver or no message.
    """
    if not pr.approvers or not pr.messages:
        return None
    return hours_between(pr.created_at, pr.messages[-1].timestamp)


def _bump(counts: Dict[str, int], key: str, amount: int = 1) -> None:
    counts[key] = counts.get(key, 0) + amount


def _merge_counts(left: Mapping[str, int], right: Mapping[str, int]) -> Dict[str, int]:
    merged = dict(left)
    for key, value in right.items():
        _bump(merged, key, value)
    return merged


def _top_names(counts: Mapping[str, int], limit: int = MOST_ACTIVE_LIMIT) -> List[str]:
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [name for name, _ in ranked[:limit]]


@dataclass(slots=True)
class AuthorAccumulator:
    name: str
    total_prs: int = 0
    approval: RunningMean = field(default_factory=RunningMean)
    rejection: RunningMean = field(default_factory=RunningMean)
    reviewers: RunningMean = field(default_factory=RunningMean)
    response_time: RunningMean = field(default_factory=RunningMean)
    time_to_merge: RunningMean = field(default_factory=RunningMean)
    repository_contributions: Dict[str, int] = field(default_factory=dict)

    def add(self, pr: PullRequestRecord) -> None:
        self.total_prs += 1
        _bump(self.repository_contributions, pr.repository_name)
        self.reviewers.add(pr.reviewer_count)
        self.approval.add(100.0 if pr.is_approved else 0.0)
        self.rejection.add(100.0 if pr.is_rejected else 0.0)

        response = first_response_hours(pr)
        if response is not None:
            self.response_time.add(response)
        merge_time = time_to_merge_hours(pr)
        if merge_time is not None:
            self.time_to_merge.add(merge_time)

    def merge(self, other: AuthorAccumulator) -> AuthorAccumulator:
        return AuthorAccumulator(
            name=self.name,
            total_prs=self.total_prs + other.total_prs,
            approval=self.approval.merge(other.approval),
            rejection=self.rejection.merge(other.rejection),
            reviewers=self.reviewers.merge(other.reviewers),
            response_time=self.response_time.merge(other.response_time),
            time_to_merge=self.time_to_merge.merge(other.time_to_merge),
            repository_contributions=_merge_counts(
                self.repository_contributions, other.repository_contributions
            ),
        )

    def summarize(self) -> PrAuthorStats:
        return PrAuthorStats(
            name=self.name,
            total_prs=self.total_prs,
            approval_rate=self.approval.mean,
            rejection_rate=self.rejection.mean,
            average_reviewers=self.reviewers.mean,
            response_time_avg=self.response_time.mean,
            time_to_merge_avg=self.time_to_merge.mean,
            repository_contributions=dict(self.repository_contributions),
        )


@dataclass(slots=True)
class ReviewerAccumulator:
    name: str
    approvals_given: int = 0
    rejections_given: int = 0
    response_time: RunningMean = field(default_factory=RunningMean)
    reviews_by_repo: Dict[str, int] = field(default_factory=dict)

    @property
    def total_reviews(self) -> int:
        return self.approvals_given + self.rejections_given

    @property
    def approval_rate(self) -> float:
        return safe_divide(self.approvals_given, self.total_reviews) * 100

    def add_approval(self, repository_name: str) -> None:
        self.approvals_given += 1
        _bump(self.reviews_by_repo, repository_name)

    def add_rejection(self, repository_name: str) -> None:
        self.rejections_given += 1
        _bump(self.reviews_by_repo, repository_name)

    def add_response(self, hours: float) -> None:
        self.response_time.add(hours)

    def merge(self, other: ReviewerAccumulator) -> ReviewerAccumulator:
        return ReviewerAccumulator(
            name=self.name,
            approvals_given=self.approvals_given + other.approvals_given,
            rejections_given=self.rejections_given + other.rejections_given,
            response_time=self.response_time.merge(other.response_time),
            reviews_by_repo=_merge_counts(self.reviews_by_repo, other.reviews_by_repo),
        )

    def summarize(self) -> ReviewerStats:
        return ReviewerStats(
            name=self.name,
            total_reviews=self.total_reviews,
            approvals_given=self.approvals_given,
            rejections_given=self.rejections_given,
            approval_rate=self.approval_rate,
            response_time_avg=self.response_time.mean,
            reviews_by_repo=dict(self.reviews_by_repo),
        )


@dataclass(slots=True)
class CommenterAccumulator:
    name: str
    total_comments: int = 0
    total_comment_length: int = 0
    comments_by_repo: Dict[str, int] = field(default_factory=dict)

    def add(self, text: Optional[str], repository_name: str) -> None:
        self.total_comments += 1
        self.total_comment_length += len(text) if text else 0
        _bump(self.comments_by_repo, repository_name)

    def merge(self, other: CommenterAccumulator) -> CommenterAccumulator:
        return CommenterAccumulator(
            name=self.name,
            total_comments=self.total_comments + other.total_comments,
            total_comment_length=self.total_comment_length + other.total_comment_length,
            comments_by_repo=_merge_counts(self.comments_by_repo, other.comments_by_repo),
        )

    def summarize(self) -> CommenterStats:
        return CommenterStats(
            name=self.name,
            total_comments=self.total_comments,
            total_comment_length=self.total_comment_length,
            average_comment_length=safe_divide(self.total_comment_length, self.total_comments),
            comments_by_repo=dict(self.comments_by_repo),
        )


@dataclass(slots=True)
class RepositoryAccumulator:
    name: str
    total_prs: int = 0
    reviewers: RunningMean = field(default_factory=RunningMean)
    approval: RunningMean = field(default_factory=RunningMean)
    comments: RunningMean = field(default_factory=RunningMean)
    time_to_merge: RunningMean = field(default_factory=RunningMean)
    author_counts: Dict[str, int] = field(default_factory=dict)
    reviewer_counts: Dict[str, int] = field(default_factory=dict)
    merge_targets: Dict[str, int] = field(default_factory=dict)

    def add(self, pr: PullRequestRecord) -> None:
        self.total_prs += 1
        _bump(self.merge_targets, pr.destination_branch)
        self.reviewers.add(pr.reviewer_count)
        self.comments.add(len(pr.messages))
        self.approval.add(100.0 if pr.is_approved else 0.0)
        merge_time = time_to_merge_hours(pr)
        if merge_time is not None:
            self.time_to_merge.add(merge_time)

        _bump(self.author_counts, pr.author)
        for reviewer in (*pr.approvers, *pr.rejecters):
            _bump(self.reviewer_counts, reviewer)

    def merge(self, other: RepositoryAccumulator) -> RepositoryAccumulator:
        return RepositoryAccumulator(
            name=self.name,
            total_prs=self.total_prs + other.total_prs,
            reviewers=self.reviewers.merge(other.reviewers),
            approval=self.approval.merge(other.approval),
            comments=self.comments.merge(other.comments),
            time_to_merge=self.time_to_merge.merge(other.time_to_merge),
            author_counts=_merge_counts(self.author_counts, other.author_counts),
            reviewer_counts=_merge_counts(self.reviewer_counts, other.reviewer_counts),
            merge_targets=_merge_counts(self.merge_targets, other.merge_targets),
        )

    def summarize(self) -> RepositoryPrStats:
        return RepositoryPrStats(
            name=self.name,
            total_prs=self.total_prs,
            average_reviewers=self.reviewers.mean,
            approval_rate=self.approval.mean,
            average_comments=self.comments.mean,
            time_to_merge_avg=self.time_to_merge.mean,
            most_active_authors=_top_names(self.author_counts),
            most_active_reviewers=_top_names(self.reviewer_counts),
            merge_targets=dict(self.merge_targets),
        )


def _get_or_create(state: Dict[str, _Acc], key: str, factory: Callable[[str], _Acc]) -> _Acc:
    accumulator = state.get(key)
    if accumulator is None:
        accumulator = state[key] = factory(key)
    return accumulator


def _start(initial: Optional[Mapping[str, _Acc]]) -> Dict[str, _Acc]:
    return copy.deepcopy(dict(initial or {}))


def _merge_states(states: Sequence[Mapping[str, _Acc]], factory: Callable[[str], _Acc]) -> Dict[str, _Acc]:
    merged: Dict[str, _Acc] = {}
    for state in states:
        for key, accumulator in state.items():
            merged[key] = _get_or_create(merged, key, factory).merge(accumulator)
    return merged


def fold_authors(
    prs: Iterable[PullRequestRecord],
    initial: Optional[Mapping[str, AuthorAccumulator]] = None,
) -> Dict[str, AuthorAccumulator]:
    state = _start(initial)
    for pr in prs:
        _validate(pr)
        _get_or_create(state, pr.author, AuthorAccumulator).add(pr)
    return state


def fold_reviewers(
    prs: Iterable[PullRequestRecord],
    initial: Optional[Mapping[str, ReviewerAccumulator]] = None,
) -> Dict[str, ReviewerAccumulator]:
    """Fold approvals, rejections and review response times per reviewer.

    Response time samples are the reviewer's own messages on PRs where they
    approved or rejected.
    """
    state = _start(initial)
    for pr in prs:
        _validate(pr)
        for approver in pr.approvers:
            _get_or_create(state, approver, ReviewerAccumulator).add_approval(pr.repository_name)
        for rejecter in pr.rejecters:
            _get_or_create(state, rejecter, ReviewerAccumulator).add_rejection(pr.repository_name)

        reviewers = set(pr.approvers) | set(pr.rejecters)
        for message in pr.messages:
            if message.author in reviewers:
                state[message.author].add_response(hours_between(pr.created_at, message.timestamp))
    return state


def fold_commenters(
    prs: Iterable[PullRequestRecord],
    initial: Optional[Mapping[str, CommenterAccumulator]] = None,
) -> Dict[str, CommenterAccumulator]:
    state = _start(initial)
    for pr in prs:
        _validate(pr)
        for message in pr.messages:
            if not message.author or not message.author.strip():
                continue
            _get_or_create(state, message.author, CommenterAccumulator).add(message.text, pr.repository_name)
    return state


def fold_repositories(
    prs: Iterable[PullRequestRecord],
    initial: Optional[Mapping[str, RepositoryAccumulator]] = None,
) -> Dict[str, RepositoryAccumulator]:
    state = _start(initial)
    for pr in prs:
        _validate(pr)
        _get_or_create(state, pr.repository_name, RepositoryAccumulator).add(pr)
    return state


def merge_author_states(states: Sequence[Mapping[str, AuthorAccumulator]]) -> Dict[str, AuthorAccumulator]:
    return _merge_states(states, AuthorAccumulator)


def merge_reviewer_states(states: Sequence[Mapping[str, ReviewerAccumulator]]) -> Dict[str, ReviewerAccumulator]:
    return _merge_states(states, ReviewerAccumulator)


def merge_commenter_states(states: Sequence[Mapping[str, CommenterAccumulator]]) -> Dict[str, CommenterAccumulator]:
    return _merge_states(states, CommenterAccumulator)


def merge_repository_states(
    states: Sequence[Mapping[str, RepositoryAccumulator]],
) -> Dict[str, RepositoryAccumulator]:
    return _merge_states(states, RepositoryAccumulator)


def get_pr_author_stats(prs: Iterable[PullRequestRecord]) -> List[PrAuthorStats]:
    return [accumulator.summarize() for accumulator in fold_authors(prs).values()]


def get_reviewer_stats(prs: Iterable[PullRequestRecord]) -> List[ReviewerStats]:
    return [accumulator.summarize() for accumulator in fold_reviewers(prs).values()]


def get_commenter_stats(prs: Iterable[PullRequestRecord]) -> List[CommenterStats]:
    return [accumulator.summarize() for accumulator in fold_commenters(prs).values()]


def get_repository_pr_stats(prs: Iterable[PullRequestRecord]) -> List[RepositoryPrStats]:
    return [accumulator.summarize() for accumulator in fold_repositories(prs).values()]


@dataclass(slots=True)
class PullRequestAggregates:
    """All four PR groupings computed over one PR set."""

    authors: List[PrAuthorStats]
    reviewers: List[ReviewerStats]
    commenters: List[CommenterStats]
    repositories: List[RepositoryPrStats]


def aggregate_pull_requests(prs: Sequence[PullRequestRecord]) -> PullRequestAggregates:
    """Run every PR grouping over ``prs``."""
    aggregates = PullRequestAggregates(
        authors=get_pr_author_stats(prs),
        reviewers=get_reviewer_stats(prs),
        commenters=get_commenter_stats(prs),
        repositories=get_repository_pr_stats(prs),
    )

    logger.info(
        "Aggregated pull requests",
        extra={
            "prs_total": len(prs),
            "authors": len(aggregates.authors),
            "reviewers": len(aggregates.reviewers),
            "commenters": len(aggregates.commenters),
            "repositories": len(aggregates.repositories),
        },
    )
    return aggregates


def average_time_to_merge(prs: Iterable[PullRequestRecord]) -> float:
    """Mean approximate merge latency over approved PRs that have messages."""
    samples = RunningMean()
    for pr in prs:
        merge_time = time_to_merge_hours(pr)
        if merge_time is not None:
            samples.add(merge_time)
    return samples.mean
