"""Read commit history from local Git repositories through the ``git`` CLI.

Repositories are the immediate sub-directories of a base folder that contain
a ``.git`` entry. Each one is read with a single ``git log --numstat`` call,
independent repositories in parallel. A repository that cannot be read is
logged and skipped so that the others still report.
"""

from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import RepositoryReadError
from .models import CommitRecord

logger = logging.getLogger(__name__)

_RECORD_SEPARATOR = "\x1e"
_FIELD_SEPARATOR = "\x1f"
# hash, parent hashes, author date, committer email, committer name, raw body
_LOG_FORMAT = "%x1e%H%x1f%P%x1f%aI%x1f%ce%x1f%cn%x1f%B%x1f"

DEFAULT_WORKERS = 4


def discover_repositories(base_folder: Path) -> List[Path]:
    """Return the sub-directories of ``base_folder`` that are Git repositories.

    Raises:
        RepositoryReadError: If ``base_folder`` is not a directory.
    """
    base_folder = Path(base_folder)
    if not base_folder.is_dir():
        raise RepositoryReadError(f"Folder does not exist: {base_folder}")
    return sorted(child for child in base_folder.iterdir() if child.is_dir() and (child / ".git").exists())


def _parse_numstat(block: str) -> Tuple[int, int]:
    additions = deletions = 0
    for line in block.splitlines():
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        # binary files report "-" for both counts
        if parts[0].isdigit():
            additions += int(parts[0])
        if parts[1].isdigit():
            deletions += int(parts[1])
    return additions, deletions


def _wall_clock(value: str) -> datetime:
    """Parse a strict ISO author date, keeping the author's own wall-clock time."""
    return datetime.fromisoformat(value.strip()).replace(tzinfo=None)


def parse_git_log(output: str, repository_name: str) -> List[CommitRecord]:
    """Parse ``git log`` output produced with this module's format string."""
    commits: List[CommitRecord] = []
    for chunk in output.split(_RECORD_SEPARATOR):
        if not chunk.strip():
            continue
        fields = chunk.split(_FIELD_SEPARATOR)
        if len(fields) != 7:
            raise RepositoryReadError(
                f"Unexpected git log record in repository '{repository_name}': {chunk[:80]!r}"
            )
        commit_id, parents, author_date, email, name, body, numstat = fields
        additions, deletions = _parse_numstat(numstat)
        commits.append(
            CommitRecord(
                commit_id=commit_id.strip(),
                commit_time=_wall_clock(author_date),
                committer_email=email,
                committer_name=name,
                message=body.strip("\n"),
                additions=additions,
                deletions=deletions,
                repository_name=repository_name,
                is_merge_commit=len(parents.split()) > 1,
            )
        )
    return commits


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def read_repository(
    repo_path: Path,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    timeout_seconds: int = 600,
) -> List[CommitRecord]:
    """Read the commits reachable from HEAD whose author date is in ``[start, end]``.

    Merge commits are diffed against their first parent.

    Raises:
        RepositoryReadError: If ``git`` is missing, fails or times out.
    """
    repo_path = Path(repo_path)
    command = [
        "git",
        "-C",
        str(repo_path),
        "log",
        "--numstat",
        "--diff-merges=first-parent",
        f"--format={_LOG_FORMAT}",
    ]

    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            check=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout_seconds,
        )
    except FileNotFoundError as exc:
        raise RepositoryReadError("The 'git' executable was not found on PATH.") from exc
    except subprocess.CalledProcessError as exc:
        raise RepositoryReadError(
            f"git log failed for repository '{repo_path.name}': {(exc.stderr or '').strip()}"
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise RepositoryReadError(f"git log timed out for repository '{repo_path.name}'.") from exc

    window_start, window_end = _naive(start), _naive(end)
    return [
        commit
        for commit in parse_git_log(completed.stdout, repo_path.name)
        if (window_start is None or commit.commit_time >= window_start)
        and (window_end is None or commit.commit_time <= window_end)
    ]


def _read_or_skip(repo_path: Path, start: Optional[datetime], end: Optional[datetime]) -> List[CommitRecord]:
    logger.info("Processing repository", extra={"repository": repo_path.name})
    try:
        return read_repository(repo_path, start, end)
    except RepositoryReadError as exc:
        logger.warning(
            "Skipping unreadable repository",
            extra={"repository": repo_path.name, "error": str(exc)},
        )
        return []


def read_repositories(
    base_folder: Path,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    workers: int = DEFAULT_WORKERS,
) -> List[CommitRecord]:
    """Read every repository under ``base_folder`` and union their commits."""
    repositories = discover_repositories(base_folder)
    logger.info(
        "Discovered repositories",
        extra={"base_folder": str(base_folder), "repositories": len(repositories)},
    )
    if not repositories:
        return []

    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda path: _read_or_skip(path, start, end), repositories))

    return [commit for commits in results for commit in commits]
