"""Leaderboards over summary rows, sorted by an enumerated metric.

Every metric maps to a typed accessor through a dispatch table, so ranking
never looks fields up by name. Metrics over a per-repository map rank by the
number of repositories in it.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, TypeVar, Union, overload

from .models import CommenterStats, CommitterSummary, PrAuthorStats, ReviewerStats

_Row = TypeVar("_Row", CommitterSummary, PrAuthorStats, ReviewerStats, CommenterStats)

DEFAULT_LIMIT = 5


class CommitterMetric(str, enum.Enum):
    TOTAL_COMMITS = "Commits"
    TOTAL_ADDITIONS = "Additions"
    TOTAL_DELETIONS = "Deletions"
    TOTAL_CHANGES = "Changes"
    AVG_CHANGES_PER_COMMIT = "Avg Changes"
    EARLY_MORNING_COMMITS = "Early Commits"
    AFTER_HOURS_COMMITS = "After-Hours Commits"
    WEEKEND_COMMITS = "Weekend Commits"
    WEEKEND_COMMIT_PCT = "Weekend %"
    BURNOUT_RISK_SCORE = "Burnout Risk"
    AVERAGE_SENTIMENT = "Sentiment"
    CODE_MOVE_COMMITS = "Code Moves"


class AuthorMetric(str, enum.Enum):
    TOTAL_PRS = "Pull Requests"
    APPROVAL_RATE = "Approval Rate"
    REJECTION_RATE = "Rejection Rate"
    AVERAGE_REVIEWERS = "Avg Reviewers"
    RESPONSE_TIME_AVG = "Avg Response Time"
    TIME_TO_MERGE_AVG = "Avg Time to Merge"
    REPOSITORIES = "Repositories"


class ReviewerMetric(str, enum.Enum):
    TOTAL_REVIEWS = "Reviews"
    APPROVALS_GIVEN = "Approvals"
    REJECTIONS_GIVEN = "Rejections"
    APPROVAL_RATE = "Approval Rate"
    RESPONSE_TIME_AVG = "Response Time"
    REPOSITORIES = "Repositories"


class CommenterMetric(str, enum.Enum):
    TOTAL_COMMENTS = "Comments"
    TOTAL_COMMENT_LENGTH = "Total Characters"
    AVERAGE_COMMENT_LENGTH = "Avg Comment Length"
    REPOSITORIES = "Repositories"


_COMMITTER_ACCESSORS: Dict[CommitterMetric, Callable[[CommitterSummary], float]] = {
    CommitterMetric.TOTAL_COMMITS: lambda row: row.total_commits,
    CommitterMetric.TOTAL_ADDITIONS: lambda row: row.total_additions,
    CommitterMetric.TOTAL_DELETIONS: lambda row: row.total_deletions,
    CommitterMetric.TOTAL_CHANGES: lambda row: row.total_changes,
    CommitterMetric.AVG_CHANGES_PER_COMMIT: lambda row: row.avg_changes_per_commit,
    CommitterMetric.EARLY_MORNING_COMMITS: lambda row: row.early_morning_commits,
    CommitterMetric.AFTER_HOURS_COMMITS: lambda row: row.after_hours_commits,
    CommitterMetric.WEEKEND_COMMITS: lambda row: row.weekend_commits,
    CommitterMetric.WEEKEND_COMMIT_PCT: lambda row: row.weekend_commit_pct,
    CommitterMetric.BURNOUT_RISK_SCORE: lambda row: row.burnout_risk_score,
    CommitterMetric.AVERAGE_SENTIMENT: lambda row: row.average_sentiment,
    CommitterMetric.CODE_MOVE_COMMITS: lambda row: row.code_move_commits,
}

_AUTHOR_ACCESSORS: Dict[AuthorMetric, Callable[[PrAuthorStats], float]] = {
    AuthorMetric.TOTAL_PRS: lambda row: row.total_prs,
    AuthorMetric.APPROVAL_RATE: lambda row: row.approval_rate,
    AuthorMetric.REJECTION_RATE: lambda row: row.rejection_rate,
    AuthorMetric.AVERAGE_REVIEWERS: lambda row: row.average_reviewers,
    AuthorMetric.RESPONSE_TIME_AVG: lambda row: row.response_time_avg,
    AuthorMetric.TIME_TO_MERGE_AVG: lambda row: row.time_to_merge_avg,
    AuthorMetric.REPOSITORIES: lambda row: len(row.repository_contributions),
}

_REVIEWER_ACCESSORS: Dict[ReviewerMetric, Callable[[ReviewerStats], float]] = {
    ReviewerMetric.TOTAL_REVIEWS: lambda row: row.total_reviews,
    ReviewerMetric.APPROVALS_GIVEN: lambda row: row.approvals_given,
    ReviewerMetric.REJECTIONS_GIVEN: lambda row: row.rejections_given,
    ReviewerMetric.APPROVAL_RATE: lambda row: row.approval_rate,
    ReviewerMetric.RESPONSE_TIME_AVG: lambda row: row.response_time_avg,
    ReviewerMetric.REPOSITORIES: lambda row: len(row.reviews_by_repo),
}

_COMMENTER_ACCESSORS: Dict[CommenterMetric, Callable[[CommenterStats], float]] = {
    CommenterMetric.TOTAL_COMMENTS: lambda row: row.total_comments,
    CommenterMetric.TOTAL_COMMENT_LENGTH: lambda row: row.total_comment_length,
    CommenterMetric.AVERAGE_COMMENT_LENGTH: lambda row: row.average_comment_length,
    CommenterMetric.REPOSITORIES: lambda row: len(row.comments_by_repo),
}


_ACCESSOR_TABLES: Dict[type, Mapping[Any, Callable[[Any], float]]] = {
    CommitterMetric: _COMMITTER_ACCESSORS,
    AuthorMetric: _AUTHOR_ACCESSORS,
    ReviewerMetric: _REVIEWER_ACCESSORS,
    CommenterMetric: _COMMENTER_ACCESSORS,
}

_Metric = Union[CommitterMetric, AuthorMetric, ReviewerMetric, CommenterMetric]


@overload
def metric_value(row: CommitterSummary, metric: CommitterMetric) -> float: ...


@overload
def metric_value(row: PrAuthorStats, metric: AuthorMetric) -> float: ...


@overload
def metric_value(row: ReviewerStats, metric: ReviewerMetric) -> float: ...


@overload
def metric_value(row: CommenterStats, metric: CommenterMetric) -> float: ...


def metric_value(row: Any, metric: _Metric) -> float:
    """Read ``metric`` off a summary row through its dispatch table.

    Raises:
        ValueError: If ``metric`` is not a member of one of the metric enums.
    """
    table = _ACCESSOR_TABLES.get(type(metric))
    if table is None:
        raise ValueError(f"Unknown leaderboard metric: {metric!r}")
    return table[metric](row)


def _rank(
    rows: Iterable[_Row],
    metric: _Metric,
    identity: Callable[[_Row], str],
    limit: int,
    ascending: bool,
) -> List[_Row]:
    if limit < 0:
        raise ValueError("Leaderboard limit must be greater than or equal to 0.")
    sign = 1 if ascending else -1
    ranked = sorted(rows, key=lambda row: (sign * metric_value(row, metric), identity(row)))
    return ranked[:limit]


def top_committers(
    summaries: Iterable[CommitterSummary],
    metric: CommitterMetric = CommitterMetric.TOTAL_COMMITS,
    limit: int = DEFAULT_LIMIT,
    ascending: bool = False,
) -> List[CommitterSummary]:
    """Return the ``limit`` committers ranked by ``metric``; ties go by email."""
    return _rank(summaries, metric, lambda row: row.email, limit, ascending)


def top_authors(
    stats: Iterable[PrAuthorStats],
    metric: AuthorMetric = AuthorMetric.TOTAL_PRS,
    limit: int = DEFAULT_LIMIT,
    ascending: bool = False,
) -> List[PrAuthorStats]:
    return _rank(stats, metric, lambda row: row.name, limit, ascending)


def top_reviewers(
    stats: Iterable[ReviewerStats],
    metric: ReviewerMetric = ReviewerMetric.TOTAL_REVIEWS,
    limit: int = DEFAULT_LIMIT,
    ascending: bool = False,
) -> List[ReviewerStats]:
    return _rank(stats, metric, lambda row: row.name, limit, ascending)


def top_commenters(
    stats: Iterable[CommenterStats],
    metric: CommenterMetric = CommenterMetric.TOTAL_COMMENTS,
    limit: int = DEFAULT_LIMIT,
    ascending: bool = False,
) -> List[CommenterStats]:
    return _rank(stats, metric, lambda row: row.name, limit, ascending)
