"""Tests for application orchestration in the main module."""

import json
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gitstats.config import BitbucketConfig
from gitstats.errors import ApiError, ConfigurationError, RepositoryReadError
from gitstats.main import orchestrate, resolve_date_range


def _write_commits(path: Path) -> Path:
    entries = [
        {
            "CommitId": f"c{index}",
            "CommitTime": f"2024-03-0{index + 1}T{hour:02d}:00:00",
            "CommitterEmail": "alice@x.com",
            "CommitterName": "Alice",
            "CommitMessage": "fix crash",
            "Additions": 10,
            "Deletions": 2,
            "RepositoryName": "core",
        }
        for index, hour in enumerate([2, 10, 23])
    ]
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path


def _write_prs(path: Path) -> Path:
    entries = [
        {
            "Author": "alice",
            "RepositoryName": "core",
            "Validators": ["bob"],
            "Rejecters": [],
            "Date": "2024-05-06 09:00:00",
            "DestinationBranchName": "main",
            "Messages": [{"Author": "bob", "Message": "ok", "Date": "2024-05-06 12:00:00"}],
        }
    ]
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path


def test_commits_command_prints_report(tmp_path, capsys):
    """Verify the commits command loads, analyzes and prints a report."""
    path = _write_commits(tmp_path / "commits.json")

    exit_code = orchestrate(["commits", "--input", str(path)])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Commit Activity Report" in out
    assert "Alice <alice@x.com>: 3 commits" in out


def test_prs_command_prints_report(tmp_path, capsys):
    """Verify the prs command prints team health and leaderboards."""
    path = _write_prs(tmp_path / "prs.json")

    exit_code = orchestrate(["prs", "--input", str(path)])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Pull Request Report" in out
    assert "1) Team Health" in out


def test_extract_commits_writes_json_and_csv(tmp_path, capsys):
    """Verify commit extraction wires the reader into both exporters."""
    commits = [Mock()]
    with patch("gitstats.main.read_repositories", return_value=commits) as read_mock, patch(
        "gitstats.main.dump_records"
    ) as dump_mock, patch("gitstats.main.dump_commits_csv") as csv_mock:
        exit_code = orchestrate(
            [
                "extract-commits",
                "--folder",
                str(tmp_path),
                "--start-date",
                "2024-01-01",
                "--end-date",
                "2024-01-31",
                "--output-csv",
                str(tmp_path / "out.csv"),
            ]
        )

    assert exit_code == 0
    read_mock.assert_called_once_with(
        tmp_path,
        datetime(2024, 1, 1),
        datetime(2024, 1, 31, 23, 59, 59, 999999),
    )
    dump_mock.assert_called_once_with(commits, Path("git-stats.json"))
    csv_mock.assert_called_once_with(commits, tmp_path / "out.csv")
    assert "Wrote 1 commits" in capsys.readouterr().out


def test_extract_prs_wires_client(tmp_path):
    """Verify PR extraction builds the client from config and dumps its result."""
    config = BitbucketConfig(base_url="https://bitbucket.example.com", project="PROJ", api_key="secret")
    client = Mock()
    client.list_project_pull_requests.return_value = [Mock(), Mock()]
    output = tmp_path / "prs.json"

    with patch("gitstats.main.load_bitbucket_config", return_value=config) as config_mock, patch(
        "gitstats.main.BitbucketClient", return_value=client
    ) as client_ctor_mock, patch("gitstats.main.dump_records") as dump_mock:
        exit_code = orchestrate(
            ["extract-prs", "--url", config.base_url, "--project", "PROJ", "--output", str(output)]
        )

    assert exit_code == 0
    config_mock.assert_called_once_with(base_url=config.base_url, project="PROJ")
    client_ctor_mock.assert_called_once_with(config=config)
    assert client.list_project_pull_requests.call_args.args[0] == "PROJ"
    dump_mock.assert_called_once_with(client.list_project_pull_requests.return_value, output)


def test_invalid_work_hours_return_configuration_exit_code(tmp_path):
    """Verify configuration errors map to exit code 2."""
    path = _write_commits(tmp_path / "commits.json")

    assert orchestrate(["commits", "--input", str(path), "--work-start", "17", "--work-end", "9"]) == 2


def test_missing_api_key_returns_authentication_exit_code(monkeypatch):
    """Verify a missing Bitbucket API key maps to exit code 3."""
    monkeypatch.delenv("BITBUCKET_API_KEY", raising=False)

    exit_code = orchestrate(["extract-prs", "--url", "https://bitbucket.example.com", "--project", "PROJ"])

    assert exit_code == 3


def test_api_error_returns_api_exit_code(monkeypatch):
    """Verify Bitbucket failures map to exit code 4."""
    monkeypatch.setenv("BITBUCKET_API_KEY", "secret")
    client = Mock()
    client.list_project_pull_requests.side_effect = ApiError("boom")

    with patch("gitstats.main.BitbucketClient", return_value=client):
        exit_code = orchestrate(["extract-prs", "--url", "https://bitbucket.example.com", "--project", "PROJ"])

    assert exit_code == 4


def test_invalid_input_returns_data_exit_code(tmp_path):
    """Verify malformed input files map to exit code 5."""
    path = tmp_path / "commits.json"
    path.write_text("{not json", encoding="utf-8")

    assert orchestrate(["commits", "--input", str(path)]) == 5


def test_missing_repository_folder_returns_data_exit_code(tmp_path):
    """Verify an unreadable repository folder maps to exit code 5."""
    with patch("gitstats.main.read_repositories", side_effect=RepositoryReadError("missing")):
        assert orchestrate(["extract-commits", "--folder", str(tmp_path / "missing")]) == 5


def test_unexpected_error_returns_generic_exit_code(tmp_path):
    """Verify unexpected exceptions map to exit code 1."""
    with patch("gitstats.main.load_pull_requests", side_effect=RuntimeError("boom")):
        assert orchestrate(["prs", "--input", str(tmp_path / "prs.json")]) == 1


def test_resolve_date_range_defaults_to_lookback_window():
    """Verify the default window spans 30 days up to now."""
    now = datetime(2024, 6, 1, 12, 0)

    start, end = resolve_date_range(None, None, now=now)

    assert end == now
    assert start == datetime(2024, 5, 2, 12, 0)


def test_resolve_date_range_end_date_covers_whole_day():
    """Verify an explicit end date includes the entire day."""
    start, end = resolve_date_range(datetime(2024, 5, 1), datetime(2024, 5, 31))

    assert start == datetime(2024, 5, 1)
    assert end == datetime(2024, 5, 31, 23, 59, 59, 999999)


def test_resolve_date_range_rejects_inverted_window():
    """Verify a start after the end raises ConfigurationError."""
    with pytest.raises(ConfigurationError):
        resolve_date_range(datetime(2024, 6, 2), datetime(2024, 6, 1))


def test_prs_command_passes_team_weights(tmp_path):
    """Verify --collaboration-weight and --velocity-weight reach the report."""
    path = _write_prs(tmp_path / "prs.json")

    with patch("gitstats.main.generate_pr_report", return_value="report") as report_mock:
        exit_code = orchestrate(
            ["prs", "--input", str(path), "--collaboration-weight", "1", "--velocity-weight", "0"]
        )

    assert exit_code == 0
    config = report_mock.call_args.args[1]
    assert config.team_weights.collaboration == pytest.approx(1.0)
    assert config.team_weights.velocity == pytest.approx(0.0)


def test_early_morning_end_after_work_start_returns_configuration_exit_code(tmp_path):
    """Verify an early-morning window reaching into working hours maps to exit code 2."""
    path = _write_commits(tmp_path / "commits.json")

    assert orchestrate(["commits", "--input", str(path), "--early-morning-end", "10"]) == 2
    assert orchestrate(["commits", "--input", str(path), "--early-morning-end", "9"]) == 0
