"""Calendar bucketing and daily trend series.

Bucket indices follow ISO ordering: hour 0-23, weekday Monday=0 to Sunday=6,
month January=0, day of month 1=0. Every slot is reported, including empty
ones, and daily series cover each day between the earliest and latest record
inclusive with explicit zeros for quiet days.
"""

from __future__ import annotations

import enum
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Sequence

from .models import (
    AnalyzedCommit,
    CommitRecord,
    PullRequestRecord,
    ReviewActivityTrend,
    SentimentTrend,
    TimeframeBucket,
)
from .stats import RunningMean

DATE_FORMAT = "%Y-%m-%d"


class TimeframeUnit(str, enum.Enum):
    HOUR = "hour"
    WEEKDAY = "weekday"
    MONTH = "month"
    DAY_OF_MONTH = "day_of_month"


class BranchSide(str, enum.Enum):
    SOURCE = "source"
    DESTINATION = "destination"


_LABELS: Dict[TimeframeUnit, List[str]] = {
    TimeframeUnit.HOUR: [f"{hour:02d}:00" for hour in range(24)],
    TimeframeUnit.WEEKDAY: ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
    TimeframeUnit.MONTH: [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    TimeframeUnit.DAY_OF_MONTH: [str(day) for day in range(1, 32)],
}

_INDEXERS: Dict[TimeframeUnit, Callable[[datetime], int]] = {
    TimeframeUnit.HOUR: lambda moment: moment.hour,
    TimeframeUnit.WEEKDAY: lambda moment: moment.weekday(),
    TimeframeUnit.MONTH: lambda moment: moment.month - 1,
    TimeframeUnit.DAY_OF_MONTH: lambda moment: moment.day - 1,
}


def bucket_index(moment: datetime, unit: TimeframeUnit) -> int:
    return _INDEXERS[unit](moment)


def bucket_counts(timestamps: Iterable[datetime], unit: TimeframeUnit) -> List[TimeframeBucket]:
    """Count timestamps per calendar slot of ``unit``; every slot is present."""
    labels = _LABELS[unit]
    counts = [0] * len(labels)
    for moment in timestamps:
        counts[bucket_index(moment, unit)] += 1
    return [TimeframeBucket(label=label, count=count) for label, count in zip(labels, counts)]


def commits_by_timeframe(commits: Iterable[CommitRecord], unit: TimeframeUnit) -> List[TimeframeBucket]:
    return bucket_counts((commit.commit_time for commit in commits), unit)


def prs_by_timeframe(prs: Iterable[PullRequestRecord], unit: TimeframeUnit) -> List[TimeframeBucket]:
    return bucket_counts((pr.created_at for pr in prs), unit)


def day_span(days: Iterable[date]) -> List[date]:
    """Every calendar day from the earliest to the latest of ``days``."""
    days = list(days)
    if not days:
        return []
    first, last = min(days), max(days)
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


def daily_counts(timestamps: Iterable[datetime]) -> List[TimeframeBucket]:
    """Count timestamps per calendar day, zero-filling days without any."""
    counts: Dict[date, int] = {}
    for moment in timestamps:
        day = moment.date()
        counts[day] = counts.get(day, 0) + 1
    return [
        TimeframeBucket(label=day.strftime(DATE_FORMAT), count=counts.get(day, 0))
        for day in day_span(counts)
    ]


def pr_activity_trend(prs: Sequence[PullRequestRecord]) -> ReviewActivityTrend:
    """Daily PR creations, approvals and rejections over the creation span.

    A PR counts as approved (rejected) on a day when it has at least one
    approver (rejecter) and at least one message posted that day; a PR with
    messages on several days counts once on each of them.
    """
    created: Dict[date, int] = {}
    approved: Dict[date, int] = {}
    rejected: Dict[date, int] = {}

    for pr in prs:
        day = pr.created_at.date()
        created[day] = created.get(day, 0) + 1
        message_days = {message.timestamp.date() for message in pr.messages}
        for message_day in message_days:
            if pr.is_approved:
                approved[message_day] = approved.get(message_day, 0) + 1
            if pr.is_rejected:
                rejected[message_day] = rejected.get(message_day, 0) + 1

    days = day_span(created)
    return ReviewActivityTrend(
        dates=[day.strftime(DATE_FORMAT) for day in days],
        pr_created=[created.get(day, 0) for day in days],
        pr_approved=[approved.get(day, 0) for day in days],
        pr_rejected=[rejected.get(day, 0) for day in days],
    )


def sentiment_trend(analyzed: Iterable[AnalyzedCommit]) -> SentimentTrend:
    """Mean commit sentiment per day; days without commits score 0."""
    daily: Dict[date, RunningMean] = {}
    for item in analyzed:
        day = item.commit.commit_time.date()
        daily.setdefault(day, RunningMean()).add(item.sentiment_score)

    days = day_span(daily)
    return SentimentTrend(
        dates=[day.strftime(DATE_FORMAT) for day in days],
        scores=[daily[day].mean if day in daily else 0.0 for day in days],
    )


def prs_by_branch(prs: Iterable[PullRequestRecord], side: BranchSide) -> Dict[str, int]:
    """Count PRs per exact branch name on the given side."""
    counts: Dict[str, int] = {}
    for pr in prs:
        branch = pr.source_branch if side is BranchSide.SOURCE else pr.destination_branch
        counts[branch] = counts.get(branch, 0) + 1
    return counts
