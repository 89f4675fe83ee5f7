"""Committer behavioral aggregation.

This module folds analyzed commits into one summary per committer email:
- Per-commit enrichment with the code-move classifier and sentiment analyzer.
- An explicit fold into typed per-identity accumulators, mergeable across
  partitions.
- Post-fold derivation of work-pattern percentages, burnout risk and
  sentiment summaries, plus the banding used to present them.
- Re-filtering commits under new code-move thresholds and simple search.
"""

from __future__ import annotations

import copy
import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .classifier import classify
from .config import AnalyticsConfig, CodeMoveThresholds, RiskBands, WorkHours
from .errors import DataValidationError
from .models import AnalyzedCommit, CommitRecord, CommitterSummary
from .sentiment import analyze_sentiment
from .stats import RunningMean, percentage, round_half_up, safe_divide

logger = logging.getLogger(__name__)

AFTER_HOURS_WEIGHT = 0.4
EARLY_MORNING_WEIGHT = 0.4
WEEKEND_WEIGHT = 0.2

POSITIVE_SENTIMENT_CUTOFF = 0.1
NEGATIVE_SENTIMENT_CUTOFF = -0.1

CommitterState = Dict[str, "CommitterAccumulator"]


class BurnoutRiskLevel(str, enum.Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"


class WeekendWarriorLevel(str, enum.Enum):
    CASUAL = "casual"
    MODERATE = "moderate"
    DEDICATED = "dedicated"
    WARRIOR = "warrior"


def analyze_commit(commit: CommitRecord, config: AnalyticsConfig) -> AnalyzedCommit:
    """Attach code-move classification and sentiment score to one commit."""
    if commit.commit_time is None:
        raise DataValidationError(f"Commit '{commit.commit_id}' is missing its commit time.")

    ratio, is_move = classify(commit.additions, commit.deletions, config.code_move)
    return AnalyzedCommit(
        commit=commit,
        code_move_ratio=ratio,
        is_code_move=is_move,
        sentiment_score=analyze_sentiment(commit.message, config.lexicon),
    )


def analyze_commits(
    commits: Iterable[CommitRecord],
    config: Optional[AnalyticsConfig] = None,
) -> List[AnalyzedCommit]:
    """Enrich every commit with its derived fields."""
    config = config or AnalyticsConfig()
    analyzed = [analyze_commit(commit, config) for commit in commits]

    logger.debug(
        "Analyzed commits",
        extra={
            "commits_total": len(analyzed),
            "code_moves": sum(1 for item in analyzed if item.is_code_move),
        },
    )
    return analyzed


@dataclass(slots=True)
class CommitterAccumulator:
    """Running per-email totals built while folding commits."""

    email: str
    name: str = ""
    total_commits: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    commits_by_hour: List[int] = field(default_factory=lambda: [0] * 24)
    early_morning_commits: int = 0
    after_hours_commits: int = 0
    weekend_commits: int = 0
    weekday_commits: int = 0
    positive_commits: int = 0
    negative_commits: int = 0
    code_move_commits: int = 0
    sentiment: RunningMean = field(default_factory=RunningMean)

    def add(self, item: AnalyzedCommit, work_hours: WorkHours) -> None:
        commit = item.commit
        hour = commit.commit_time.hour

        self.name = commit.committer_name
        self.total_commits += 1
        self.total_additions += commit.additions
        self.total_deletions += commit.deletions
        self.commits_by_hour[hour] += 1

        if work_hours.is_early_morning(hour):
            self.early_morning_commits += 1
        if work_hours.is_after_hours(hour):
            self.after_hours_commits += 1
        # Saturday and Sunday
        if commit.commit_time.weekday() >= 5:
            self.weekend_commits += 1
        else:
            self.weekday_commits += 1

        self.sentiment.add(item.sentiment_score)
        if item.sentiment_score > POSITIVE_SENTIMENT_CUTOFF:
            self.positive_commits += 1
        elif item.sentiment_score < NEGATIVE_SENTIMENT_CUTOFF:
            self.negative_commits += 1

        if item.is_code_move:
            self.code_move_commits += 1

    def merge(self, other: CommitterAccumulator) -> CommitterAccumulator:
        """Combine two partial folds of the same email; ``other`` is the later one."""
        return CommitterAccumulator(
            email=self.email,
            name=other.name or self.name,
            total_commits=self.total_commits + other.total_commits,
            total_additions=self.total_additions + other.total_additions,
            total_deletions=self.total_deletions + other.total_deletions,
            commits_by_hour=[a + b for a, b in zip(self.commits_by_hour, other.commits_by_hour)],
            early_morning_commits=self.early_morning_commits + other.early_morning_commits,
            after_hours_commits=self.after_hours_commits + other.after_hours_commits,
            weekend_commits=self.weekend_commits + other.weekend_commits,
            weekday_commits=self.weekday_commits + other.weekday_commits,
            positive_commits=self.positive_commits + other.positive_commits,
            negative_commits=self.negative_commits + other.negative_commits,
            code_move_commits=self.code_move_commits + other.code_move_commits,
            sentiment=self.sentiment.merge(other.sentiment),
        )

    def summarize(self) -> CommitterSummary:
        total = self.total_commits
        after_hours_pct = percentage(self.after_hours_commits, total)
        early_morning_pct = percentage(self.early_morning_commits, total)
        weekend_pct = percentage(self.weekend_commits, total)
        total_changes = self.total_additions + self.total_deletions

        return CommitterSummary(
            name=self.name,
            email=self.email,
            total_commits=total,
            total_additions=self.total_additions,
            total_deletions=self.total_deletions,
            total_changes=total_changes,
            avg_changes_per_commit=round_half_up(safe_divide(total_changes, total)),
            commits_by_hour=list(self.commits_by_hour),
            early_morning_commits=self.early_morning_commits,
            after_hours_commits=self.after_hours_commits,
            weekend_commits=self.weekend_commits,
            weekday_commits=self.weekday_commits,
            weekend_commit_pct=round_half_up(weekend_pct),
            burnout_risk_score=burnout_risk_score(after_hours_pct, early_morning_pct, weekend_pct),
            average_sentiment=self.sentiment.mean,
            positive_pct=percentage(self.positive_commits, total),
            negative_pct=percentage(self.negative_commits, total),
            code_move_commits=self.code_move_commits,
        )


def burnout_risk_score(after_hours_pct: float, early_morning_pct: float, weekend_pct: float) -> int:
    """Weighted 0-100 work-pattern risk.

    Time of day weighs twice as much as the day of the week.
    """
    raw = (
        after_hours_pct * AFTER_HOURS_WEIGHT
        + early_morning_pct * EARLY_MORNING_WEIGHT
        + weekend_pct * WEEKEND_WEIGHT
    )
    return round_half_up(max(0.0, min(100.0, raw)))


def fold_commits(
    analyzed: Iterable[AnalyzedCommit],
    work_hours: WorkHours,
    initial: Optional[Mapping[str, CommitterAccumulator]] = None,
) -> CommitterState:
    """Fold commits into per-email accumulators, starting from ``initial``.

    ``initial`` is copied, never mutated. Emails are grouped exactly as
    given; the display name is whichever one was folded last.
    """
    state: CommitterState = copy.deepcopy(dict(initial or {}))
    for item in analyzed:
        email = item.commit.committer_email
        accumulator = state.get(email)
        if accumulator is None:
            accumulator = state[email] = CommitterAccumulator(email=email)
        accumulator.add(item, work_hours)
    return state


def merge_committer_states(states: Sequence[Mapping[str, CommitterAccumulator]]) -> CommitterState:
    """Merge partition-local folds; later partitions win the display name."""
    merged: CommitterState = {}
    for state in states:
        for email, accumulator in state.items():
            existing = merged.get(email) or CommitterAccumulator(email=email)
            merged[email] = existing.merge(accumulator)
    return merged


def summarize_committers(state: Mapping[str, CommitterAccumulator]) -> List[CommitterSummary]:
    return [accumulator.summarize() for accumulator in state.values()]


def get_committer_stats(
    analyzed: Iterable[AnalyzedCommit],
    work_hours: Optional[WorkHours] = None,
) -> List[CommitterSummary]:
    """Build one ``CommitterSummary`` per committer email in a single pass."""
    return summarize_committers(fold_commits(analyzed, work_hours or WorkHours()))


def burnout_risk_level(score: float, bands: RiskBands = RiskBands()) -> BurnoutRiskLevel:
    low, moderate, high = bands.burnout
    if score <= low:
        return BurnoutRiskLevel.LOW
    if score <= moderate:
        return BurnoutRiskLevel.MODERATE
    if score <= high:
        return BurnoutRiskLevel.HIGH
    return BurnoutRiskLevel.SEVERE


def weekend_warrior_level(weekend_pct: float, bands: RiskBands = RiskBands()) -> WeekendWarriorLevel:
    casual, moderate, dedicated = bands.weekend
    if weekend_pct <= casual:
        return WeekendWarriorLevel.CASUAL
    if weekend_pct <= moderate:
        return WeekendWarriorLevel.MODERATE
    if weekend_pct <= dedicated:
        return WeekendWarriorLevel.DEDICATED
    return WeekendWarriorLevel.WARRIOR


def filter_commits(
    analyzed: Iterable[AnalyzedCommit],
    thresholds: CodeMoveThresholds,
    exclude_code_moves: bool = True,
    exclude_merge_commits: bool = False,
) -> List[AnalyzedCommit]:
    """Re-classify commits under ``thresholds`` and drop the excluded ones.

    Only the stored line counts are needed; sentiment scores are kept as is.
    """
    kept: List[AnalyzedCommit] = []
    for item in analyzed:
        ratio, is_move = classify(item.commit.additions, item.commit.deletions, thresholds)
        if exclude_code_moves and is_move:
            continue
        if exclude_merge_commits and item.commit.is_merge_commit:
            continue
        kept.append(replace(item, code_move_ratio=ratio, is_code_move=is_move))
    return kept


def search_commit_by_id(commits: Iterable[CommitRecord], search_term: str) -> Optional[CommitRecord]:
    """Return the first commit whose identifier contains ``search_term``."""
    for commit in commits:
        if search_term in commit.commit_id:
            return commit
    return None


def search_commits_by_text(commits: Iterable[CommitRecord], search_term: str) -> List[CommitRecord]:
    """Case-insensitive search over message, committer name, email and repository."""
    needle = search_term.lower()
    return [
        commit
        for commit in commits
        if needle in (commit.message or "").lower()
        or needle in commit.committer_name.lower()
        or needle in commit.committer_email.lower()
        or needle in commit.repository_name.lower()
    ]
