"""Team-level collaboration and velocity scoring over a whole PR set."""

from __future__ import annotations

import enum
import logging
from typing import Sequence

from .config import TeamScoreWeights
from .models import PullRequestRecord, TeamHealthScore
from .pull_requests import average_time_to_merge, first_response_hours
from .stats import RunningMean, clamp, round_half_up, safe_divide

logger = logging.getLogger(__name__)

REVIEWER_SCORE_MAX = 25.0
DIVERSITY_SCORE_MAX = 25.0
RESPONSE_SCORE_MAX = 25.0
APPROVAL_SCORE_MAX = 25.0
TARGET_REVIEWERS_PER_PR = 3

RESPONSE_FULL_HOURS = 24
RESPONSE_ZERO_HOURS = 72

THROUGHPUT_SCORE_MAX = 40.0
THROUGHPUT_POINTS_PER_PR_PER_DAY = 20.0
MERGE_SCORE_MAX = 40.0
MERGE_FULL_HOURS = 48
MERGE_ZERO_HOURS = 120
SIZE_SCORE_MAX = 20.0
COMMENTS_BEFORE_PENALTY = 5


class ScoreBand(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    NEEDS_IMPROVEMENT = "needs_improvement"
    CRITICAL = "critical"


_COLLABORATION_DESCRIPTIONS = {
    ScoreBand.EXCELLENT: "Excellent collaboration practices",
    ScoreBand.GOOD: "Good team collaboration",
    ScoreBand.MODERATE: "Moderate collaboration, room for improvement",
    ScoreBand.NEEDS_IMPROVEMENT: "Collaboration needs significant improvement",
    ScoreBand.CRITICAL: "Critical collaboration issues detected",
}

_VELOCITY_DESCRIPTIONS = {
    ScoreBand.EXCELLENT: "Excellent team velocity",
    ScoreBand.GOOD: "Good development pace",
    ScoreBand.MODERATE: "Moderate velocity, room for improvement",
    ScoreBand.NEEDS_IMPROVEMENT: "Development process needs improvement",
    ScoreBand.CRITICAL: "Significant bottlenecks detected",
}


def _linear_decay(value: float, full_at: float, zero_at: float, max_points: float) -> float:
    """Full points at or below ``full_at``, falling linearly to 0 at ``zero_at``."""
    return clamp(max_points * (1 - (value - full_at) / (zero_at - full_at)), 0.0, max_points)


def collaboration_score(prs: Sequence[PullRequestRecord]) -> int:
    """Score review breadth, responsiveness and approval health from 0 to 100.

    Sub-scores, 25 points each:
    - reviewers per PR, full marks at three;
    - distinct reviewers over distinct authors, full marks at one or more;
    - mean first-response time, full marks up to 24h and none from 72h;
    - share of PRs with at least one approval.

    PRs without messages are left out of the response-time mean. When no PR
    has a message the mean is 0, which earns the full response score.
    """
    if not prs:
        return 0

    total = len(prs)
    avg_reviewers = sum(pr.reviewer_count for pr in prs) / total
    reviewer_points = min(avg_reviewers / TARGET_REVIEWERS_PER_PR * REVIEWER_SCORE_MAX, REVIEWER_SCORE_MAX)

    reviewers = {name for pr in prs for name in (*pr.approvers, *pr.rejecters)}
    authors = {pr.author for pr in prs}
    diversity = len(reviewers) / max(len(authors), 1)
    diversity_points = min(diversity * DIVERSITY_SCORE_MAX, DIVERSITY_SCORE_MAX)

    response = RunningMean()
    for pr in prs:
        hours = first_response_hours(pr)
        if hours is not None:
            response.add(hours)
    response_points = _linear_decay(response.mean, RESPONSE_FULL_HOURS, RESPONSE_ZERO_HOURS, RESPONSE_SCORE_MAX)

    approved = sum(1 for pr in prs if pr.is_approved)
    approval_points = approved / total * APPROVAL_SCORE_MAX

    return round_half_up(reviewer_points + diversity_points + response_points + approval_points)


def observed_day_range(prs: Sequence[PullRequestRecord]) -> int:
    """Whole days between the earliest and latest PR creation, at least 1."""
    created = [pr.created_at for pr in prs]
    span = max(created) - min(created)
    return max(1, span.days)


def velocity_score(prs: Sequence[PullRequestRecord]) -> int:
    """Score throughput, merge latency and PR size from 0 to 100.

    - throughput: PRs per observed day times 20, capped at 40;
    - merge time: 40 up to 48h, none from 120h;
    - size: 20 minus every average comment above five, floored at 0.
    """
    if not prs:
        return 0

    total = len(prs)
    throughput_points = min(
        total / observed_day_range(prs) * THROUGHPUT_POINTS_PER_PR_PER_DAY,
        THROUGHPUT_SCORE_MAX,
    )
    merge_points = _linear_decay(average_time_to_merge(prs), MERGE_FULL_HOURS, MERGE_ZERO_HOURS, MERGE_SCORE_MAX)

    avg_comments = sum(len(pr.messages) for pr in prs) / total
    size_points = max(0.0, SIZE_SCORE_MAX - max(0.0, avg_comments - COMMENTS_BEFORE_PENALTY))

    return round_half_up(throughput_points + merge_points + size_points)


def team_health(
    prs: Sequence[PullRequestRecord],
    weights: TeamScoreWeights = TeamScoreWeights(),
) -> TeamHealthScore:
    """Compute both team indices and their weighted overall score."""
    collaboration = collaboration_score(prs)
    velocity = velocity_score(prs)
    blended = collaboration * weights.collaboration + velocity * weights.velocity
    overall = round_half_up(safe_divide(blended, weights.collaboration + weights.velocity))

    logger.debug(
        "Computed team health",
        extra={"prs_total": len(prs), "collaboration": collaboration, "velocity": velocity},
    )
    return TeamHealthScore(collaboration=collaboration, velocity=velocity, overall=overall)


def score_band(score: float) -> ScoreBand:
    if score >= 80:
        return ScoreBand.EXCELLENT
    if score >= 60:
        return ScoreBand.GOOD
    if score >= 40:
        return ScoreBand.MODERATE
    if score >= 20:
        return ScoreBand.NEEDS_IMPROVEMENT
    return ScoreBand.CRITICAL


def describe_collaboration(score: float) -> str:
    return _COLLABORATION_DESCRIPTIONS[score_band(score)]


def describe_velocity(score: float) -> str:
    return _VELOCITY_DESCRIPTIONS[score_band(score)]
