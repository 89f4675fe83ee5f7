"""Configuration parsing and validation for gitstats.

Every threshold the engine uses lives in an immutable value passed into the
aggregation entry points; nothing is read from module-level state at scoring
time. ``build_analytics_config`` validates user-adjustable values and
``load_bitbucket_config`` resolves review-system credentials.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

from .errors import AuthenticationError, ConfigurationError
from .sentiment import DEFAULT_LEXICON, SentimentLexicon

BITBUCKET_API_KEY_ENV = "BITBUCKET_API_KEY"


@dataclass(frozen=True)
class CodeMoveThresholds:
    """Size and ratio thresholds for the code-move heuristic.

    ``size_threshold`` is the minimum number of changed lines (additions plus
    deletions) and ``ratio_threshold`` the minimum ``min/max`` balance for a
    commit to be flagged as a code move.
    """

    size_threshold: int = 500
    ratio_threshold: float = 0.8


@dataclass(frozen=True)
class WorkHours:
    """Working-day boundaries, as hours of the day in the commit's own clock."""

    start: int = 9
    end: int = 17
    early_morning_start: int = 0
    early_morning_end: int = 6

    def is_after_hours(self, hour: int) -> bool:
        return hour < self.start or hour >= self.end

    def is_early_morning(self, hour: int) -> bool:
        return self.early_morning_start <= hour < self.early_morning_end


@dataclass(frozen=True)
class RiskBands:
    """Upper bounds (inclusive) for burnout and weekend-warrior banding."""

    burnout: Tuple[int, int, int] = (20, 35, 50)
    weekend: Tuple[int, int, int] = (10, 25, 40)


@dataclass(frozen=True)
class TeamScoreWeights:
    """Blend weights for the overall team health score."""

    collaboration: float = 0.5
    velocity: float = 0.5


@dataclass(frozen=True)
class AnalyticsConfig:
    """All tunable inputs of the analytics engine, with documented defaults."""

    code_move: CodeMoveThresholds = field(default_factory=CodeMoveThresholds)
    work_hours: WorkHours = field(default_factory=WorkHours)
    lexicon: SentimentLexicon = DEFAULT_LEXICON
    risk_bands: RiskBands = field(default_factory=RiskBands)
    team_weights: TeamScoreWeights = field(default_factory=TeamScoreWeights)


@dataclass(frozen=True)
class BitbucketConfig:
    """Validated settings used by the Bitbucket review-system client."""

    base_url: str
    project: str
    api_key: str


def _validate_hour(name: str, value: int) -> None:
    if not 0 <= value <= 24:
        raise ConfigurationError(
            f"Invalid value for '{name}': expected an hour between 0 and 24, got {value}."
        )


def build_analytics_config(
    size_threshold: int = 500,
    ratio_threshold: float = 0.8,
    work_start: int = 9,
    work_end: int = 17,
    early_morning_end: int = 6,
    collaboration_weight: float = 0.5,
    velocity_weight: float = 0.5,
) -> AnalyticsConfig:
    """Build and validate engine configuration from user-adjustable values.

    Args:
        size_threshold: Minimum changed lines for a code move.
        ratio_threshold: Minimum additions/deletions balance for a code move.
        work_start: First working hour (inclusive).
        work_end: End of the working day (exclusive).
        early_morning_end: End of the early-morning window that starts at midnight.
        collaboration_weight: Weight of the collaboration score in the overall team score.
        velocity_weight: Weight of the velocity score in the overall team score.

    Returns:
        A validated ``AnalyticsConfig`` instance.

    Raises:
        ConfigurationError: If any value is out of range.
    """
    if size_threshold < 0:
        raise ConfigurationError(
            "Invalid value for 'size_threshold': expected an integer greater than or equal to 0."
        )
    if not 0 <= ratio_threshold <= 1:
        raise ConfigurationError(
            "Invalid value for 'ratio_threshold': expected a number between 0 and 1."
        )
    _validate_hour("work_start", work_start)
    _validate_hour("work_end", work_end)
    _validate_hour("early_morning_end", early_morning_end)
    if work_start >= work_end:
        raise ConfigurationError(
            "Invalid working hours: 'work_start' must be earlier than 'work_end'."
        )
    if early_morning_end > work_start:
        raise ConfigurationError(
            "Invalid early-morning window: 'early_morning_end' must not be later than 'work_start'."
        )
    if collaboration_weight < 0 or velocity_weight < 0 or collaboration_weight + velocity_weight <= 0:
        raise ConfigurationError(
            "Invalid team score weights: expected non-negative weights with a positive sum."
        )

    return AnalyticsConfig(
        code_move=CodeMoveThresholds(
            size_threshold=size_threshold,
            ratio_threshold=ratio_threshold,
        ),
        work_hours=WorkHours(
            start=work_start,
            end=work_end,
            early_morning_end=early_morning_end,
        ),
        team_weights=TeamScoreWeights(
            collaboration=collaboration_weight,
            velocity=velocity_weight,
        ),
    )


def load_bitbucket_config(base_url: str, project: str) -> BitbucketConfig:
    """Build and validate Bitbucket client configuration.

    Raises:
        ConfigurationError: If the server URL or project key is empty.
        AuthenticationError: If ``BITBUCKET_API_KEY`` is not configured.
    """
    if not base_url or not base_url.strip():
        raise ConfigurationError("Missing required Bitbucket server URL.")
    if not project or not project.strip():
        raise ConfigurationError("Missing required Bitbucket project key.")

    api_key: str = os.getenv(BITBUCKET_API_KEY_ENV, "").strip()
    if not api_key:
        raise AuthenticationError(
            "Missing required Bitbucket API key. "
            f"Set the '{BITBUCKET_API_KEY_ENV}' environment variable before extracting pull requests."
        )

    return BitbucketConfig(
        base_url=base_url.strip().rstrip("/"),
        project=project.strip(),
        api_key=api_key,
    )
