"""Custom exception types for the gitstats analytics package."""


class GitStatsError(Exception):
    """Base exception for all recoverable gitstats errors."""


class ConfigurationError(GitStatsError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(GitStatsError):
    """Raised when review-system credentials are unavailable or invalid."""


class ApiError(GitStatsError):
    """Raised when a review-system API request fails or returns an unexpected response."""


class RepositoryReadError(GitStatsError):
    """Raised when a version-control repository cannot be read."""


class DataValidationError(GitStatsError):
    """Raised when input records or computed metrics do not meet expected constraints."""
