"""Load and export commit and pull request records in the JSON export shapes.

Commit entries use ``CommitId``, ``CommitTime``, ``CommitterEmail``,
``CommitterName``, ``CommitMessage``, ``Additions``, ``Deletions``,
``RepositoryName`` and ``IsMergeCommit``. Pull request entries use ``Author``,
``RepositoryName``, ``ProjectName``, ``IncomingBranchName``,
``DestinationBranchName``, ``Validators``, ``Rejecters``, ``Date`` and
``Messages`` (each with ``Author``, ``Message`` and ``Date``).

Timestamps are read as ISO-8601 (``Z`` suffix allowed) or
``yyyy-MM-dd HH:mm:ss`` and kept as naive wall-clock times; they are written
back as ``yyyy-MM-dd HH:mm:ss``.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from .errors import DataValidationError
from .models import CommitRecord, PullRequestMessage, PullRequestRecord

logger = logging.getLogger(__name__)

EXPORT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CSV_COLUMNS = (
    "Commit ID",
    "Commit Time",
    "Committer Email",
    "Committer Name",
    "Commit Message",
    "Additions",
    "Deletions",
    "Repository Name",
)

Record = Union[CommitRecord, PullRequestRecord]


def parse_timestamp(value: Any) -> datetime:
    """Parse an exported timestamp string.

    Raises:
        DataValidationError: If ``value`` is not a recognizable timestamp.
    """
    if not isinstance(value, str) or not value.strip():
        raise DataValidationError(f"Invalid timestamp: {value!r}")

    text = value.strip()
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(normalized).replace(tzinfo=None)
    except ValueError:
        pass
    try:
        return datetime.strptime(text, EXPORT_DATE_FORMAT)
    except ValueError as exc:
        raise DataValidationError(f"Invalid timestamp: {value!r}") from exc


def _require(entry: Mapping[str, Any], key: str, kind: str) -> Any:
    if key not in entry or entry[key] is None:
        raise DataValidationError(f"{kind} entry is missing required field '{key}': {dict(entry)!r}")
    return entry[key]


def _count(entry: Mapping[str, Any], key: str) -> int:
    value = _require(entry, key, "Commit")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DataValidationError(f"Commit field '{key}' must be a non-negative integer, got {value!r}")
    return value


def _names(entry: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = entry.get(key) or []
    if not isinstance(value, list):
        raise DataValidationError(f"Pull request field '{key}' must be a list, got {value!r}")
    return tuple(str(name) for name in value)


def parse_commit(entry: Mapping[str, Any]) -> CommitRecord:
    """Build a ``CommitRecord`` from one exported commit entry."""
    message = entry.get("CommitMessage")
    return CommitRecord(
        commit_id=str(_require(entry, "CommitId", "Commit")),
        commit_time=parse_timestamp(_require(entry, "CommitTime", "Commit")),
        committer_email=str(_require(entry, "CommitterEmail", "Commit")),
        committer_name=str(_require(entry, "CommitterName", "Commit")),
        message=message if isinstance(message, str) else None,
        additions=_count(entry, "Additions"),
        deletions=_count(entry, "Deletions"),
        repository_name=str(_require(entry, "RepositoryName", "Commit")),
        is_merge_commit=bool(entry.get("IsMergeCommit", False)),
    )


def parse_message(entry: Mapping[str, Any]) -> PullRequestMessage:
    text = entry.get("Message")
    return PullRequestMessage(
        author=str(_require(entry, "Author", "Message")),
        text=text if isinstance(text, str) else None,
        timestamp=parse_timestamp(_require(entry, "Date", "Message")),
    )


def parse_pull_request(entry: Mapping[str, Any]) -> PullRequestRecord:
    """Build a ``PullRequestRecord`` from one exported pull request entry."""
    messages = entry.get("Messages") or []
    if not isinstance(messages, list):
        raise DataValidationError(f"Pull request field 'Messages' must be a list, got {messages!r}")

    return PullRequestRecord(
        author=str(_require(entry, "Author", "Pull request")),
        repository_name=str(_require(entry, "RepositoryName", "Pull request")),
        project_name=str(entry.get("ProjectName") or ""),
        source_branch=str(entry.get("IncomingBranchName") or ""),
        destination_branch=str(entry.get("DestinationBranchName") or ""),
        created_at=parse_timestamp(_require(entry, "Date", "Pull request")),
        approvers=_names(entry, "Validators"),
        rejecters=_names(entry, "Rejecters"),
        messages=tuple(parse_message(message) for message in messages),
    )


def _read_entries(path: Path) -> List[Dict[str, Any]]:
    try:
        with open(path, encoding="utf-8") as handle:
            payload = json.load(handle)
    except OSError as exc:
        raise DataValidationError(f"Cannot read input file '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise DataValidationError(f"Input file '{path}' is not valid JSON: {exc}") from exc

    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise DataValidationError(f"Input file '{path}' must contain a JSON array of objects.")
    return payload


def load_commits(path: Path) -> List[CommitRecord]:
    commits = [parse_commit(entry) for entry in _read_entries(Path(path))]
    logger.info("Loaded commits", extra={"path": str(path), "commits_total": len(commits)})
    return commits


def load_pull_requests(path: Path) -> List[PullRequestRecord]:
    prs = [parse_pull_request(entry) for entry in _read_entries(Path(path))]
    logger.info("Loaded pull requests", extra={"path": str(path), "prs_total": len(prs)})
    return prs


def _format_timestamp(value: datetime) -> str:
    return value.strftime(EXPORT_DATE_FORMAT)


def commit_to_entry(commit: CommitRecord) -> Dict[str, Any]:
    return {
        "CommitId": commit.commit_id,
        "CommitTime": _format_timestamp(commit.commit_time),
        "CommitterEmail": commit.committer_email,
        "CommitterName": commit.committer_name,
        "CommitMessage": commit.message,
        "Additions": commit.additions,
        "Deletions": commit.deletions,
        "RepositoryName": commit.repository_name,
        "IsMergeCommit": commit.is_merge_commit,
    }


def pull_request_to_entry(pr: PullRequestRecord) -> Dict[str, Any]:
    return {
        "Author": pr.author,
        "RepositoryName": pr.repository_name,
        "ProjectName": pr.project_name,
        "IncomingBranchName": pr.source_branch,
        "DestinationBranchName": pr.destination_branch,
        "Validators": list(pr.approvers),
        "Rejecters": list(pr.rejecters),
        "Date": _format_timestamp(pr.created_at),
        "Messages": [
            {
                "Author": message.author,
                "Message": message.text,
                "Date": _format_timestamp(message.timestamp),
            }
            for message in pr.messages
        ],
    }


def dump_records(records: Sequence[Record], path: Path) -> None:
    """Write commits or pull requests to ``path`` as an indented JSON array."""
    entries = [
        commit_to_entry(record) if isinstance(record, CommitRecord) else pull_request_to_entry(record)
        for record in records
    ]
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(entries, handle, indent=2, ensure_ascii=False)
    logger.info("Wrote records", extra={"path": str(path), "records": len(entries)})


def dump_commits_csv(commits: Iterable[CommitRecord], path: Path) -> None:
    """Write commits to ``path`` as CSV with a header row."""
    with open(path, "w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_COLUMNS)
        for commit in commits:
            writer.writerow(
                [
                    commit.commit_id,
                    _format_timestamp(commit.commit_time),
                    commit.committer_email,
                    commit.committer_name,
                    commit.message or "",
                    commit.additions,
                    commit.deletions,
                    commit.repository_name,
                ]
            )
