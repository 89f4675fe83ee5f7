"""Command-line argument parsing for gitstats."""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import Optional, Sequence


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed < 0:
        raise argparse.ArgumentTypeError("must be greater than or equal to 0")

    return parsed


def _hour(value: str) -> int:
    parsed = _non_negative_int(value)
    if parsed > 24:
        raise argparse.ArgumentTypeError("must be an hour between 0 and 24")
    return parsed


def _ratio(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a number") from exc

    if not 0 <= parsed <= 1:
        raise argparse.ArgumentTypeError("must be between 0 and 1")

    return parsed


def _non_negative_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a number") from exc

    if parsed < 0:
        raise argparse.ArgumentTypeError("must be greater than or equal to 0")

    return parsed


def _date(value: str) -> datetime:
    """Parse a ``YYYY-MM-DD`` CLI date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a date in YYYY-MM-DD format") from exc


def _add_date_range(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--start-date",
        type=_date,
        default=None,
        help="First day to extract, YYYY-MM-DD (default: 30 days ago).",
    )
    parser.add_argument(
        "--end-date",
        type=_date,
        default=None,
        help="Last day to extract, YYYY-MM-DD (default: now).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitstats",
        description=(
            "Behavioral and collaboration analytics for commits and pull requests: "
            "code-move detection, commit sentiment, burnout risk and team health."
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    commits = subparsers.add_parser("commits", help="Analyze an exported commit JSON file.")
    commits.add_argument("--input", required=True, help="Path to the commit JSON export.")
    commits.add_argument(
        "--size-threshold",
        type=_non_negative_int,
        default=500,
        help="Minimum changed lines for a code move (default: 500).",
    )
    commits.add_argument(
        "--move-ratio",
        type=_ratio,
        default=0.8,
        help="Minimum additions/deletions balance for a code move (default: 0.8).",
    )
    commits.add_argument(
        "--work-start",
        type=_hour,
        default=9,
        help="First working hour (default: 9).",
    )
    commits.add_argument(
        "--work-end",
        type=_hour,
        default=17,
        help="End of the working day, exclusive (default: 17).",
    )
    commits.add_argument(
        "--early-morning-end",
        type=_hour,
        default=6,
        help="End of the early-morning window starting at midnight, exclusive (default: 6).",
    )
    commits.add_argument(
        "--exclude-code-moves",
        action="store_true",
        help="Leave potential code moves out of the analysis.",
    )
    commits.add_argument(
        "--exclude-merge-commits",
        action="store_true",
        help="Leave merge commits out of the analysis.",
    )
    commits.add_argument(
        "--top",
        type=_positive_int,
        default=5,
        help="Rows per leaderboard (default: 5).",
    )

    prs = subparsers.add_parser("prs", help="Analyze an exported pull request JSON file.")
    prs.add_argument("--input", required=True, help="Path to the pull request JSON export.")
    prs.add_argument(
        "--collaboration-weight",
        type=_non_negative_float,
        default=0.5,
        help="Weight of the collaboration score in the overall team score (default: 0.5).",
    )
    prs.add_argument(
        "--velocity-weight",
        type=_non_negative_float,
        default=0.5,
        help="Weight of the velocity score in the overall team score (default: 0.5).",
    )
    prs.add_argument(
        "--top",
        type=_positive_int,
        default=5,
        help="Rows per leaderboard (default: 5).",
    )

    extract_commits = subparsers.add_parser(
        "extract-commits",
        help="Extract commits from every Git repository under a folder.",
    )
    extract_commits.add_argument(
        "--folder",
        required=True,
        help="Folder whose sub-directories are Git repositories.",
    )
    _add_date_range(extract_commits)
    extract_commits.add_argument(
        "--output",
        default="git-stats.json",
        help="JSON output path (default: git-stats.json).",
    )
    extract_commits.add_argument(
        "--output-csv",
        default=None,
        help="Optional CSV output path.",
    )

    extract_prs = subparsers.add_parser(
        "extract-prs",
        help="Extract pull requests from a Bitbucket Server project.",
    )
    extract_prs.add_argument("--url", required=True, help="Bitbucket Server base URL.")
    extract_prs.add_argument("--project", required=True, help="Bitbucket project key.")
    _add_date_range(extract_prs)
    extract_prs.add_argument(
        "--output",
        default="bitbucket-prs.json",
        help="JSON output path (default: bitbucket-prs.json).",
    )

    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed CLI arguments; ``command`` names the selected subcommand.
    """
    return build_parser().parse_args(argv)
