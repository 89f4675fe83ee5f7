"""Entry point wiring the CLI, collaborators and analytics engine together."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .bitbucket_client import BitbucketClient
from .cli import parse_args
from .committers import analyze_commits, filter_commits, get_committer_stats
from .config import build_analytics_config, load_bitbucket_config
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    DataValidationError,
    RepositoryReadError,
)
from .git_reader import read_repositories
from .loaders import dump_commits_csv, dump_records, load_commits, load_pull_requests
from .report import generate_commit_report, generate_pr_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4
EXIT_DATA = 5

DEFAULT_LOOKBACK_DAYS = 30


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def resolve_date_range(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """Resolve the extraction window.

    An explicit end date covers that whole day. Without a start date the
    window opens ``DEFAULT_LOOKBACK_DAYS`` before the end.

    Raises:
        ConfigurationError: If the start falls after the end.
    """
    end = end_date + timedelta(days=1, microseconds=-1) if end_date else (now or datetime.now())
    start = start_date or end - timedelta(days=DEFAULT_LOOKBACK_DAYS)
    if start > end:
        raise ConfigurationError("Invalid date range: '--start-date' must not be after '--end-date'.")
    return start, end


def run_commits(args: argparse.Namespace) -> None:
    config = build_analytics_config(
        size_threshold=args.size_threshold,
        ratio_threshold=args.move_ratio,
        work_start=args.work_start,
        work_end=args.work_end,
        early_morning_end=args.early_morning_end,
    )
    commits = load_commits(Path(args.input))
    analyzed = filter_commits(
        analyze_commits(commits, config),
        config.code_move,
        exclude_code_moves=args.exclude_code_moves,
        exclude_merge_commits=args.exclude_merge_commits,
    )
    summaries = get_committer_stats(analyzed, config.work_hours)
    print(generate_commit_report(summaries, analyzed, config, args.top))


def run_prs(args: argparse.Namespace) -> None:
    config = build_analytics_config(
        collaboration_weight=args.collaboration_weight,
        velocity_weight=args.velocity_weight,
    )
    prs = load_pull_requests(Path(args.input))
    print(generate_pr_report(prs, config, args.top))


def run_extract_commits(args: argparse.Namespace) -> None:
    start, end = resolve_date_range(args.start_date, args.end_date)
    print(f"Extracting commits from '{args.folder}' between {start:%Y-%m-%d} and {end:%Y-%m-%d}...")
    commits = read_repositories(Path(args.folder), start, end)
    dump_records(commits, Path(args.output))
    if args.output_csv:
        dump_commits_csv(commits, Path(args.output_csv))
    print(f"Wrote {len(commits)} commits to '{args.output}'.")


def run_extract_prs(args: argparse.Namespace) -> None:
    start, end = resolve_date_range(args.start_date, args.end_date)
    config = load_bitbucket_config(base_url=args.url, project=args.project)
    client = BitbucketClient(config=config)
    print(f"Extracting pull requests from project '{config.project}' between {start:%Y-%m-%d} and {end:%Y-%m-%d}...")
    prs = client.list_project_pull_requests(config.project, start, end)
    dump_records(prs, Path(args.output))
    print(f"Wrote {len(prs)} pull requests to '{args.output}'.")


_COMMANDS = {
    "commits": run_commits,
    "prs": run_prs,
    "extract-commits": run_extract_commits,
    "extract-prs": run_extract_prs,
}


def orchestrate(argv: Optional[Sequence[str]] = None) -> int:
    """Run the selected subcommand and map failures to exit codes.

    Returns:
        0 on success, 2 for configuration errors, 3 for authentication
        errors, 4 for review-system API errors, 5 for invalid input data or
        unreadable repositories and 1 for anything unexpected.
    """
    try:
        args = parse_args(argv)
        configure_logging(args.verbose)
        logger.debug("Running command", extra={"command": args.command})
        _COMMANDS[args.command](args)
        return EXIT_OK
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        logger.error("Authentication error: %s", exc)
        return EXIT_AUTHENTICATION
    except ApiError as exc:
        logger.error("Bitbucket API error: %s", exc)
        return EXIT_API
    except (DataValidationError, RepositoryReadError) as exc:
        logger.error("Input error: %s", exc)
        return EXIT_DATA
    except Exception:
        logger.exception("Unexpected error")
        return EXIT_UNEXPECTED


def main() -> int:
    return orchestrate()


if __name__ == "__main__":
    raise SystemExit(main())
