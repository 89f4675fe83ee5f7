"""Human-readable text reports for commit and pull request analytics."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .committers import burnout_risk_level, weekend_warrior_level
from .config import AnalyticsConfig
from .models import AnalyzedCommit, CommitterSummary, PullRequestRecord
from .pull_requests import aggregate_pull_requests, average_time_to_merge
from .ranking import (
    AuthorMetric,
    CommenterMetric,
    CommitterMetric,
    ReviewerMetric,
    top_authors,
    top_commenters,
    top_committers,
    top_reviewers,
)
from .sentiment import categorize_sentiment
from .stats import format_hours, safe_divide
from .team_health import describe_collaboration, describe_velocity, team_health
from .timeseries import BranchSide, TimeframeUnit, commits_by_timeframe, prs_by_branch


def _section(title: str) -> List[str]:
    return ["", title]


def generate_commit_report(
    summaries: Sequence[CommitterSummary],
    analyzed: Sequence[AnalyzedCommit],
    config: Optional[AnalyticsConfig] = None,
    limit: int = 5,
) -> str:
    """Generate a multi-line text report over committer summaries.

    The report covers totals, the leaderboard by commits, burnout risk,
    weekend activity, commit sentiment and the busiest weekday.

    Args:
        summaries: One summary per committer email.
        analyzed: The analyzed commits the summaries were built from.
        config: Configuration used for banding; defaults apply when omitted.
        limit: Number of rows per leaderboard.

    Returns:
        Formatted multi-line text report.
    """
    config = config or AnalyticsConfig()
    bands = config.risk_bands
    total_commits = sum(summary.total_commits for summary in summaries)
    code_moves = sum(1 for item in analyzed if item.is_code_move)
    mean_sentiment = safe_divide(sum(item.sentiment_score for item in analyzed), len(analyzed))

    lines = [
        "Commit Activity Report",
        f"   Committers: {len(summaries)}",
        f"   Commits: {total_commits}",
        f"   Potential code moves: {code_moves}",
        f"   Average sentiment: {mean_sentiment:+.2f} ({categorize_sentiment(mean_sentiment).value})",
    ]

    lines += _section("1) Top Committers")
    for summary in top_committers(summaries, CommitterMetric.TOTAL_COMMITS, limit):
        lines.append(
            f"   {summary.name} <{summary.email}>: {summary.total_commits} commits, "
            f"{summary.total_changes} changes (avg {summary.avg_changes_per_commit})"
        )

    lines += _section("2) Burnout Risk")
    for summary in top_committers(summaries, CommitterMetric.BURNOUT_RISK_SCORE, limit):
        level = burnout_risk_level(summary.burnout_risk_score, bands)
        lines.append(
            f"   {summary.name}: {summary.burnout_risk_score} ({level.value}), "
            f"{summary.after_hours_commits} after hours, {summary.early_morning_commits} early morning"
        )

    lines += _section("3) Weekend Warriors")
    for summary in top_committers(summaries, CommitterMetric.WEEKEND_COMMIT_PCT, limit):
        level = weekend_warrior_level(summary.weekend_commit_pct, bands)
        lines.append(f"   {summary.name}: {summary.weekend_commit_pct}% on weekends ({level.value})")

    lines += _section("4) Commit Sentiment")
    for summary in top_committers(summaries, CommitterMetric.AVERAGE_SENTIMENT, limit):
        lines.append(
            f"   {summary.name}: {summary.average_sentiment:+.2f} "
            f"({summary.positive_pct:.0f}% positive, {summary.negative_pct:.0f}% negative)"
        )

    weekdays = commits_by_timeframe((item.commit for item in analyzed), TimeframeUnit.WEEKDAY)
    busiest = max(weekdays, key=lambda bucket: bucket.count)
    lines += _section("5) Busiest Weekday")
    lines.append(f"   {busiest.label}: {busiest.count} commits" if busiest.count else "   n/a")

    return "\n".join(lines)


def generate_pr_report(
    prs: Sequence[PullRequestRecord],
    config: Optional[AnalyticsConfig] = None,
    limit: int = 5,
) -> str:
    """Generate a multi-line text report over a pull request set.

    Args:
        prs: Pull requests to report on.
        config: Configuration holding the team score weights; defaults apply when omitted.
        limit: Number of rows per leaderboard.

    Returns:
        Formatted multi-line text report.
    """
    config = config or AnalyticsConfig()
    aggregates = aggregate_pull_requests(prs)
    health = team_health(prs, config.team_weights)
    merge_time = average_time_to_merge(prs) if any(pr.approvers and pr.messages for pr in prs) else None

    lines = [
        "Pull Request Report",
        f"   Pull requests: {len(prs)}",
        f"   Repositories: {len(aggregates.repositories)}",
        f"   Average time to merge: {format_hours(merge_time)}",
        "",
        "1) Team Health",
        f"   Collaboration: {health.collaboration} - {describe_collaboration(health.collaboration)}",
        f"   Velocity: {health.velocity} - {describe_velocity(health.velocity)}",
        f"   Overall: {health.overall}",
    ]

    lines += _section("2) Top Authors")
    for author in top_authors(aggregates.authors, AuthorMetric.TOTAL_PRS, limit):
        lines.append(
            f"   {author.name}: {author.total_prs} PRs, {author.approval_rate:.0f}% approved, "
            f"first response {format_hours(author.response_time_avg)}"
        )

    lines += _section("3) Top Reviewers")
    for reviewer in top_reviewers(aggregates.reviewers, ReviewerMetric.TOTAL_REVIEWS, limit):
        lines.append(
            f"   {reviewer.name}: {reviewer.total_reviews} reviews, "
            f"{reviewer.approval_rate:.0f}% approvals"
        )

    lines += _section("4) Top Commenters")
    for commenter in top_commenters(aggregates.commenters, CommenterMetric.TOTAL_COMMENTS, limit):
        lines.append(
            f"   {commenter.name}: {commenter.total_comments} comments, "
            f"avg {commenter.average_comment_length:.0f} characters"
        )

    lines += _section("5) Merge Targets")
    targets = prs_by_branch(prs, BranchSide.DESTINATION)
    for branch, count in sorted(targets.items(), key=lambda item: (-item[1], item[0]))[:limit]:
        lines.append(f"   {branch}: {count}")

    return "\n".join(lines)
