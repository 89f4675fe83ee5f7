"""Domain models for commit and pull request analytics.

Input records are frozen: the engine never mutates what the repository reader
or the review-system client hands it. Output summaries are plain dataclasses
built fresh on every aggregation pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """Represents one commit as yielded by the repository reader."""

    commit_id: str
    commit_time: datetime
    committer_email: str
    committer_name: str
    message: Optional[str]
    additions: int
    deletions: int
    repository_name: str
    is_merge_commit: bool = False

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions


@dataclass(frozen=True, slots=True)
class PullRequestMessage:
    """Represents one comment posted on a pull request."""

    author: str
    text: Optional[str]
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class PullRequestRecord:
    """Represents one pull request as yielded by the review-system client."""

    author: str
    repository_name: str
    project_name: str
    source_branch: str
    destination_branch: str
    created_at: datetime
    approvers: Tuple[str, ...] = ()
    rejecters: Tuple[str, ...] = ()
    messages: Tuple[PullRequestMessage, ...] = ()

    @property
    def reviewer_count(self) -> int:
        return len(self.approvers) + len(self.rejecters)

    @property
    def is_approved(self) -> bool:
        return len(self.approvers) > 0

    @property
    def is_rejected(self) -> bool:
        return len(self.rejecters) > 0


@dataclass(frozen=True, slots=True)
class AnalyzedCommit:
    """A commit with its code-move classification and sentiment score attached."""

    commit: CommitRecord
    code_move_ratio: float
    is_code_move: bool
    sentiment_score: float


@dataclass(slots=True)
class CommitterSummary:
    """Behavioral summary for one committer email."""

    name: str
    email: str
    total_commits: int
    total_additions: int
    total_deletions: int
    total_changes: int
    avg_changes_per_commit: int
    commits_by_hour: List[int]
    early_morning_commits: int
    after_hours_commits: int
    weekend_commits: int
    weekday_commits: int
    weekend_commit_pct: int
    burnout_risk_score: int
    average_sentiment: float
    positive_pct: float
    negative_pct: float
    code_move_commits: int = 0


@dataclass(slots=True)
class PrAuthorStats:
    """Pull request statistics for one author."""

    name: str
    total_prs: int
    approval_rate: float
    rejection_rate: float
    average_reviewers: float
    response_time_avg: float
    time_to_merge_avg: float
    repository_contributions: Dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class ReviewerStats:
    """Review statistics for one approver or rejecter."""

    name: str
    total_reviews: int
    approvals_given: int
    rejections_given: int
    approval_rate: float
    response_time_avg: float
    reviews_by_repo: Dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class CommenterStats:
    """Comment statistics for one message author."""

    name: str
    total_comments: int
    total_comment_length: int
    average_comment_length: float
    comments_by_repo: Dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class RepositoryPrStats:
    """Per-repository pull request rollup."""

    name: str
    total_prs: int
    average_reviewers: float
    approval_rate: float
    average_comments: float
    time_to_merge_avg: float
    most_active_authors: List[str] = field(default_factory=list)
    most_active_reviewers: List[str] = field(default_factory=list)
    merge_targets: Dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class TeamHealthScore:
    """Collaboration and velocity indices (0-100) plus their weighted blend."""

    collaboration: int
    velocity: int
    overall: int


@dataclass(slots=True)
class TimeframeBucket:
    """One calendar slot and the number of records that fell into it."""

    label: str
    count: int


@dataclass(slots=True)
class ReviewActivityTrend:
    """Daily pull request activity across the observed date span."""

    dates: List[str]
    pr_created: List[int]
    pr_approved: List[int]
    pr_rejected: List[int]


@dataclass(slots=True)
class SentimentTrend:
    """Daily mean commit sentiment across the observed date span."""

    dates: List[str]
    scores: List[float]
