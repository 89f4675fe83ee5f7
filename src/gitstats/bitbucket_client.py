"""Bitbucket Server REST API client for pull request extraction."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .config import BitbucketConfig
from .errors import ApiError, AuthenticationError
from .models import PullRequestMessage, PullRequestRecord

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
UNKNOWN_REVIEWER = "Unknown Reviewer"


def from_epoch_millis(value: Any) -> Optional[datetime]:
    """Convert a Bitbucket epoch-milliseconds timestamp to a naive UTC datetime."""
    if value is None:
        return None
    try:
        moment = datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ApiError(f"Bitbucket API returned an invalid timestamp: {value!r}") from exc
    return moment.replace(tzinfo=None)


def _display_name(holder: Optional[Dict[str, Any]], default: str = UNKNOWN) -> str:
    user = (holder or {}).get("user") or {}
    name = user.get("displayName")
    return str(name) if name else default


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class BitbucketClient:
    """Small, typed client for the Bitbucket Server 1.0 pull request APIs."""

    _API_PREFIX = "rest/api/1.0"
    _REPOSITORY_LIMIT = 1000
    _PULL_REQUEST_PAGE_SIZE = 100
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: BitbucketConfig, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated Bitbucket API client.

        Args:
            config: Validated server URL, project key and API key.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._base_url = f"{config.base_url}/{self._API_PREFIX}"

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Authorization": f"Bearer {config.api_key}",
            }
        )

    def _build_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                logger.debug("Ignoring non-numeric Retry-After header", extra={"retry_after": retry_after_header})

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GET request with retry logic for 429/5xx responses.

        Raises:
            AuthenticationError: If the server rejects the API key.
            ApiError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return a JSON object.
        """
        url = self._build_url(path)
        query = dict(params or {})

        last_error: Optional[Exception] = None

        for attempt in range(1, self._MAX_RETRIES + 1):
            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._MAX_RETRIES:
                    raise ApiError(f"Bitbucket request failed after retries: GET {url}") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                logger.debug(
                    "Retrying Bitbucket request",
                    extra={"url": url, "status_code": status_code, "attempt": attempt},
                )
                time.sleep(self._extract_backoff_seconds(response, attempt))
                continue

            if status_code in (401, 403):
                raise AuthenticationError(
                    f"Bitbucket API rejected the API key: GET {url} returned {status_code}"
                )

            if status_code >= 400:
                raise ApiError(
                    "Bitbucket API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise ApiError(f"Bitbucket API returned invalid JSON: GET {url}") from exc

            if not isinstance(payload, dict):
                raise ApiError(f"Bitbucket API returned unexpected payload shape: GET {url}")

            return payload

        raise ApiError(f"Bitbucket request failed after retries: GET {url}") from last_error

    def list_repositories(self, project: Optional[str] = None) -> List[str]:
        """List repository slugs in a project (the configured one by default)."""
        project = project or self._config.project
        payload = self._get_json(
            f"projects/{project}/repos",
            params={"limit": self._REPOSITORY_LIMIT},
        )
        return [str(item["slug"]) for item in payload.get("values", []) if item.get("slug")]

    def list_comments(self, project: str, repository: str, pr_id: int) -> List[PullRequestMessage]:
        """List the comments posted on a pull request, oldest first.

        Only ``COMMENTED`` activities with a comment body and a creation date
        are kept. The activities endpoint returns newest first.
        """
        payload = self._get_json(
            f"projects/{project}/repos/{repository}/pull-requests/{pr_id}/activities"
        )
        messages: List[PullRequestMessage] = []

        for activity in payload.get("values", []):
            if activity.get("action") != "COMMENTED":
                continue
            comment = activity.get("comment")
            timestamp = from_epoch_millis(activity.get("createdDate"))
            if comment is None or timestamp is None:
                continue

            text = comment.get("text")
            messages.append(
                PullRequestMessage(
                    author=_display_name(activity),
                    text=str(text) if text is not None else None,
                    timestamp=timestamp,
                )
            )

        messages.sort(key=lambda message: message.timestamp)
        return messages

    def _to_record(self, project: str, repository: str, item: Dict[str, Any]) -> PullRequestRecord:
        approvers: List[str] = []
        rejecters: List[str] = []
        for reviewer in item.get("reviewers") or []:
            name = _display_name(reviewer, default=UNKNOWN_REVIEWER)
            if reviewer.get("approved") is True:
                approvers.append(name)
            else:
                rejecters.append(name)

        pr_id = item.get("id")
        messages = self.list_comments(project, repository, int(pr_id)) if pr_id is not None else []

        return PullRequestRecord(
            author=_display_name(item.get("author")),
            repository_name=repository,
            project_name=project,
            source_branch=str((item.get("fromRef") or {}).get("displayId") or UNKNOWN),
            destination_branch=str((item.get("toRef") or {}).get("displayId") or UNKNOWN),
            created_at=from_epoch_millis(item["createdDate"]),
            approvers=tuple(approvers),
            rejecters=tuple(rejecters),
            messages=tuple(messages),
        )

    def list_pull_requests(
        self,
        project: str,
        repository: str,
        start: datetime,
        end: datetime,
    ) -> List[PullRequestRecord]:
        """List pull requests in any state created within ``[start, end]``.

        Pages are followed through ``isLastPage``/``nextPageStart``. Reviewers
        who approved become approvers; every other reviewer is recorded as a
        rejecter. Comments are fetched for each kept pull request.
        """
        window_start = _to_naive_utc(start)
        window_end = _to_naive_utc(end)
        pull_requests: List[PullRequestRecord] = []
        page_start = 0

        while True:
            payload = self._get_json(
                f"projects/{project}/repos/{repository}/pull-requests",
                params={
                    "state": "ALL",
                    "limit": self._PULL_REQUEST_PAGE_SIZE,
                    "start": page_start,
                },
            )

            for item in payload.get("values", []):
                created_at = from_epoch_millis(item.get("createdDate"))
                if created_at is None:
                    logger.debug(
                        "Skipping pull request without creation date",
                        extra={"repository": repository, "pr_id": item.get("id")},
                    )
                    continue
                if created_at < window_start or created_at > window_end:
                    continue
                pull_requests.append(self._to_record(project, repository, item))

            next_page_start = payload.get("nextPageStart")
            if payload.get("isLastPage", True) or next_page_start is None:
                break
            page_start = int(next_page_start)

        return pull_requests

    def list_project_pull_requests(
        self,
        project: str,
        start: datetime,
        end: datetime,
    ) -> List[PullRequestRecord]:
        """List pull requests across every repository of a project."""
        repositories = self.list_repositories(project)
        logger.info(
            "Found repositories in project",
            extra={"project": project, "repositories": len(repositories)},
        )

        pull_requests: List[PullRequestRecord] = []
        for repository in repositories:
            repository_prs = self.list_pull_requests(project, repository, start, end)
            logger.info(
                "Fetched pull requests",
                extra={"project": project, "repository": repository, "prs": len(repository_prs)},
            )
            pull_requests.extend(repository_prs)

        return pull_requests
