"""Behavioral and collaboration analytics for commit and pull request records."""

__version__ = "0.1.0"
