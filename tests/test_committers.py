"""Tests for committer behavioral aggregation."""

import random
import sys
from dataclasses import asdict
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gitstats.committers import (
    BurnoutRiskLevel,
    WeekendWarriorLevel,
    analyze_commit,
    analyze_commits,
    burnout_risk_level,
    burnout_risk_score,
    filter_commits,
    fold_commits,
    get_committer_stats,
    merge_committer_states,
    search_commit_by_id,
    search_commits_by_text,
    summarize_committers,
    weekend_warrior_level,
)
from gitstats.config import AnalyticsConfig, CodeMoveThresholds, WorkHours
from gitstats.errors import DataValidationError
from gitstats.models import CommitRecord


def _commit(
    when: datetime,
    email: str = "alice@x.com",
    name: str = "Alice",
    additions: int = 0,
    deletions: int = 0,
    message: str = "update readme",
    commit_id: str = "c0",
    repository: str = "core",
    is_merge: bool = False,
) -> CommitRecord:
    return CommitRecord(
        commit_id=commit_id,
        commit_time=when,
        committer_email=email,
        committer_name=name,
        message=message,
        additions=additions,
        deletions=deletions,
        repository_name=repository,
        is_merge_commit=is_merge,
    )


def _assert_summaries_equal(left, right):
    assert [row.email for row in left] == [row.email for row in right]
    for a, b in zip(left, right):
        a_fields, b_fields = asdict(a), asdict(b)
        for key, value in a_fields.items():
            if isinstance(value, float):
                assert value == pytest.approx(b_fields[key]), key
            else:
                assert value == b_fields[key], key


def _random_commits(seed: int, count: int = 120):
    rng = random.Random(seed)
    emails = ["alice@x.com", "bob@x.com", "carol@x.com", "Alice@x.com"]
    messages = ["add feature", "fix crash", "fixed bug", "great work 🎉", "wip", "revert hack", ""]
    start = datetime(2024, 1, 1)
    return [
        _commit(
            start + timedelta(hours=rng.randint(0, 24 * 60), minutes=rng.randint(0, 59)),
            email=email,
            name=email.split("@")[0].title(),
            additions=rng.randint(0, 900),
            deletions=rng.randint(0, 900),
            message=rng.choice(messages),
            commit_id=f"c{index}",
        )
        for index, email in enumerate(rng.choice(emails) for _ in range(count))
    ]


def test_alice_scenario_burnout_is_47_and_high():
    """Verify the three-commit scenario: early, after-hours, weekend and burnout 47."""
    commits = [
        _commit(datetime(2024, 3, 2, 2, 0), additions=400, deletions=50, commit_id="a1"),
        _commit(datetime(2024, 3, 4, 10, 0), additions=10, deletions=5, commit_id="a2"),
        _commit(datetime(2024, 3, 5, 23, 30), additions=0, deletions=0, commit_id="a3"),
    ]

    [summary] = get_committer_stats(analyze_commits(commits))

    assert summary.email == "alice@x.com"
    assert summary.total_commits == 3
    assert summary.early_morning_commits == 1
    assert summary.after_hours_commits == 2
    assert summary.weekend_commits == 1
    assert summary.weekday_commits == 2
    assert summary.total_changes == 465
    assert summary.avg_changes_per_commit == 155
    assert summary.weekend_commit_pct == 33
    assert summary.burnout_risk_score == 47
    assert burnout_risk_level(summary.burnout_risk_score) is BurnoutRiskLevel.HIGH


def test_hour_histogram_and_time_of_day_partition_sum_to_total():
    """Verify every commit lands in exactly one hour slot and one time-of-day window."""
    for summary in get_committer_stats(analyze_commits(_random_commits(3))):
        hours = summary.commits_by_hour
        assert sum(hours) == summary.total_commits
        late_or_pre_work = sum(hours[6:9]) + sum(hours[17:24])
        working = sum(hours[9:17])
        assert summary.early_morning_commits + late_or_pre_work + working == summary.total_commits
        assert summary.weekend_commits + summary.weekday_commits == summary.total_commits


def test_burnout_risk_score_is_bounded():
    """Verify the burnout score stays in [0, 100] for any percentage mix."""
    rng = random.Random(5)
    for _ in range(200):
        score = burnout_risk_score(rng.uniform(0, 100), rng.uniform(0, 100), rng.uniform(0, 100))
        assert 0 <= score <= 100
    assert burnout_risk_score(100, 100, 100) == 100
    assert burnout_risk_score(0, 0, 0) == 0


def test_grouping_is_by_exact_email_and_last_name_wins():
    """Verify emails are not normalized and the last folded name is displayed."""
    commits = [
        _commit(datetime(2024, 3, 4, 10), email="alice@x.com", name="Alice"),
        _commit(datetime(2024, 3, 4, 11), email="Alice@x.com", name="ALICE"),
        _commit(datetime(2024, 3, 4, 12), email="alice@x.com", name="Alice Smith"),
    ]

    summaries = {row.email: row for row in get_committer_stats(analyze_commits(commits))}

    assert set(summaries) == {"alice@x.com", "Alice@x.com"}
    assert summaries["alice@x.com"].total_commits == 2
    assert summaries["alice@x.com"].name == "Alice Smith"


def test_sentiment_summary_uses_strict_cutoffs():
    """Verify positive and negative percentages and the mean sentiment."""
    commits = [
        _commit(datetime(2024, 3, 4, 10), message="Add new feature"),
        _commit(datetime(2024, 3, 4, 11), message="fixed the bug"),
        _commit(datetime(2024, 3, 4, 12), message=""),
        _commit(datetime(2024, 3, 4, 13), message=None),
    ]

    [summary] = get_committer_stats(analyze_commits(commits))

    assert summary.average_sentiment == pytest.approx(0.0)
    assert summary.positive_pct == pytest.approx(25.0)
    assert summary.negative_pct == pytest.approx(25.0)


def test_custom_work_hours_change_after_hours_counts():
    """Verify work hours come from the injected configuration."""
    commits = [_commit(datetime(2024, 3, 4, 8)), _commit(datetime(2024, 3, 4, 18))]
    analyzed = analyze_commits(commits)

    [default] = get_committer_stats(analyzed)
    [shifted] = get_committer_stats(analyzed, WorkHours(start=8, end=19))

    assert default.after_hours_commits == 2
    assert shifted.after_hours_commits == 0


def test_partition_merge_equals_single_pass():
    """Verify folding arbitrary partitions and merging reproduces the single pass."""
    analyzed = analyze_commits(_random_commits(17))
    work_hours = WorkHours()
    single = summarize_committers(fold_commits(analyzed, work_hours))

    rng = random.Random(23)
    for _ in range(10):
        cuts = sorted(rng.sample(range(1, len(analyzed)), rng.randint(1, 6)))
        bounds = [0] + cuts + [len(analyzed)]
        states = [fold_commits(analyzed[a:b], work_hours) for a, b in zip(bounds, bounds[1:])]
        merged = summarize_committers(merge_committer_states(states))
        _assert_summaries_equal(merged, single)


def test_fold_continues_from_initial_state_without_mutating_it():
    """Verify an initial state is copied and extended."""
    analyzed = analyze_commits(_random_commits(29, count=40))
    work_hours = WorkHours()
    first = fold_commits(analyzed[:20], work_hours)
    before = {email: acc.total_commits for email, acc in first.items()}

    resumed = fold_commits(analyzed[20:], work_hours, initial=first)

    assert {email: acc.total_commits for email, acc in first.items()} == before
    _assert_summaries_equal(
        summarize_committers(resumed),
        summarize_committers(fold_commits(analyzed, work_hours)),
    )


def test_results_are_invariant_to_input_order():
    """Verify shuffling commits does not change per-identity summaries."""
    commits = _random_commits(31)
    shuffled = list(commits)
    random.Random(1).shuffle(shuffled)

    by_email = {row.email: row for row in get_committer_stats(analyze_commits(commits))}
    shuffled_by_email = {row.email: row for row in get_committer_stats(analyze_commits(shuffled))}

    assert set(by_email) == set(shuffled_by_email)
    for email, row in by_email.items():
        other = shuffled_by_email[email]
        assert row.total_commits == other.total_commits
        assert row.commits_by_hour == other.commits_by_hour
        assert row.burnout_risk_score == other.burnout_risk_score
        assert row.average_sentiment == pytest.approx(other.average_sentiment)


def test_analyze_commit_requires_commit_time():
    """Verify a commit without a timestamp is rejected rather than skipped."""
    commit = _commit(None)

    with pytest.raises(DataValidationError):
        analyze_commit(commit, AnalyticsConfig())


def test_analyze_commit_attaches_classification_and_sentiment():
    """Verify per-commit enrichment."""
    item = analyze_commit(
        _commit(datetime(2024, 3, 4, 10), additions=300, deletions=280, message="great refactor"),
        AnalyticsConfig(),
    )

    assert item.is_code_move is True
    assert item.code_move_ratio == pytest.approx(280 / 300)
    assert item.sentiment_score == pytest.approx(1.0)


def test_filter_commits_reclassifies_under_new_thresholds():
    """Verify filters re-run the classifier and drop moves and merges on request."""
    analyzed = analyze_commits(
        [
            _commit(datetime(2024, 3, 4, 10), additions=300, deletions=280, commit_id="move"),
            _commit(datetime(2024, 3, 4, 11), additions=30, deletions=28, commit_id="small"),
            _commit(datetime(2024, 3, 4, 12), additions=5, deletions=0, commit_id="merge", is_merge=True),
        ]
    )

    kept = filter_commits(analyzed, CodeMoveThresholds(size_threshold=50, ratio_threshold=0.8))
    assert [item.commit.commit_id for item in kept] == ["merge"]

    kept = filter_commits(
        analyzed,
        CodeMoveThresholds(),
        exclude_code_moves=False,
        exclude_merge_commits=True,
    )
    assert [item.commit.commit_id for item in kept] == ["move", "small"]
    assert kept[1].is_code_move is False


def test_risk_bandings():
    """Verify burnout and weekend-warrior band boundaries are inclusive."""
    assert burnout_risk_level(20) is BurnoutRiskLevel.LOW
    assert burnout_risk_level(35) is BurnoutRiskLevel.MODERATE
    assert burnout_risk_level(50) is BurnoutRiskLevel.HIGH
    assert burnout_risk_level(51) is BurnoutRiskLevel.SEVERE
    assert weekend_warrior_level(10) is WeekendWarriorLevel.CASUAL
    assert weekend_warrior_level(25) is WeekendWarriorLevel.MODERATE
    assert weekend_warrior_level(40) is WeekendWarriorLevel.DEDICATED
    assert weekend_warrior_level(41) is WeekendWarriorLevel.WARRIOR


def test_search_by_id_and_text():
    """Verify id substring search and case-insensitive text search."""
    commits = [
        _commit(datetime(2024, 3, 4, 10), commit_id="abc123", message="Add login page"),
        _commit(datetime(2024, 3, 4, 11), commit_id="def456", email="bob@x.com", name="Bob", repository="api"),
    ]

    assert search_commit_by_id(commits, "c12").commit_id == "abc123"
    assert search_commit_by_id(commits, "zzz") is None
    assert [c.commit_id for c in search_commits_by_text(commits, "LOGIN")] == ["abc123"]
    assert [c.commit_id for c in search_commits_by_text(commits, "bob")] == ["def456"]
    assert [c.commit_id for c in search_commits_by_text(commits, "API")] == ["def456"]
