"""Tests for command-line argument parsing."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gitstats.cli import parse_args


def test_commits_defaults():
    """Verify the commits subcommand applies documented defaults."""
    args = parse_args(["commits", "--input", "git-stats.json"])

    assert args.command == "commits"
    assert args.input == "git-stats.json"
    assert args.size_threshold == 500
    assert args.move_ratio == pytest.approx(0.8)
    assert args.work_start == 9
    assert args.work_end == 17
    assert args.exclude_code_moves is False
    assert args.exclude_merge_commits is False
    assert args.top == 5
    assert args.verbose is False


def test_commits_with_all_options():
    """Verify every commits option is parsed and typed."""
    args = parse_args(
        [
            "--verbose",
            "commits",
            "--input",
            "in.json",
            "--size-threshold",
            "200",
            "--move-ratio",
            "0.9",
            "--work-start",
            "8",
            "--work-end",
            "18",
            "--exclude-code-moves",
            "--exclude-merge-commits",
            "--top",
            "10",
        ]
    )

    assert args.verbose is True
    assert args.size_threshold == 200
    assert args.move_ratio == pytest.approx(0.9)
    assert (args.work_start, args.work_end) == (8, 18)
    assert args.exclude_code_moves is True
    assert args.exclude_merge_commits is True
    assert args.top == 10


def test_extract_commits_dates_and_outputs():
    """Verify date parsing and output paths for commit extraction."""
    args = parse_args(
        [
            "extract-commits",
            "--folder",
            "/repos",
            "--start-date",
            "2024-01-01",
            "--end-date",
            "2024-01-31",
            "--output-csv",
            "out.csv",
        ]
    )

    assert args.folder == "/repos"
    assert args.start_date == datetime(2024, 1, 1)
    assert args.end_date == datetime(2024, 1, 31)
    assert args.output == "git-stats.json"
    assert args.output_csv == "out.csv"


def test_extract_prs_requires_url_and_project():
    """Verify extract-prs reads server and project and defaults its output."""
    args = parse_args(["extract-prs", "--url", "https://bitbucket.example.com", "--project", "PROJ"])

    assert args.url == "https://bitbucket.example.com"
    assert args.project == "PROJ"
    assert args.start_date is None
    assert args.output == "bitbucket-prs.json"


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["commits"],
        ["commits", "--input", "x.json", "--top", "0"],
        ["commits", "--input", "x.json", "--move-ratio", "2"],
        ["commits", "--input", "x.json", "--work-start", "25"],
        ["commits", "--input", "x.json", "--size-threshold", "-5"],
        ["extract-commits", "--folder", "/repos", "--start-date", "01/02/2024"],
        ["extract-prs", "--url", "https://bitbucket.example.com"],
    ],
)
def test_parse_args_rejects_invalid_input(argv):
    """Verify invalid or missing arguments exit through argparse."""
    with pytest.raises(SystemExit):
        parse_args(argv)


def test_early_morning_end_and_team_weights():
    """Verify the early-morning boundary and team score weights are parsed."""
    commits = parse_args(["commits", "--input", "in.json", "--early-morning-end", "5"])
    prs = parse_args(["prs", "--input", "in.json", "--collaboration-weight", "1", "--velocity-weight", "0"])
    defaults = parse_args(["prs", "--input", "in.json"])

    assert commits.early_morning_end == 5
    assert prs.collaboration_weight == pytest.approx(1.0)
    assert prs.velocity_weight == pytest.approx(0.0)
    assert (defaults.collaboration_weight, defaults.velocity_weight) == (0.5, 0.5)
    with pytest.raises(SystemExit):
        parse_args(["prs", "--input", "in.json", "--velocity-weight", "-1"])
