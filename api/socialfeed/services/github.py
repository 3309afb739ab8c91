"""GitHub public-events client and event mapping for the activity ingestor.

GitHubClient wraps an httpx.AsyncClient that the caller constructs once per
process and passes in; the client owns no global state and does not close
the http client it was given.

map_github_event() turns one raw event from GET /users/{user}/events into an
ActivityEventIn, or None for anything outside the four recognised shapes:

  RepositoryEvent   action=created                       → create_repo
  PullRequestEvent  action=opened                        → open_pr
  PullRequestEvent  action=closed, pull_request.merged   → merge_pr
  PushEvent                                              → push_commits

Timestamps come from GitHub, so events sort correctly in the timeline
relative to posts and comments.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from socialfeed.models.activity import ActivityKind
from socialfeed.schemas.activity import ActivityEventIn

log = structlog.get_logger(__name__)


class GitHubAPIError(Exception):
    """Raised when the GitHub events endpoint answers with a non-2xx status or bad JSON."""

    def __init__(self, username: str, status_code: int | None, message: str) -> None:
        self.username = username
        self.status_code = status_code
        super().__init__(f"GitHub events for {username!r}: {message}")


class GitHubClient:
    """Fetches a user's recent public events from the GitHub REST API."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str, token: str = "") -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    async def fetch_events(self, username: str) -> list[dict[str, Any]]:
        """Return the raw event objects for `username`, newest first.

        Raises:
            GitHubAPIError: non-2xx response or a body that is not a JSON list.
            httpx.HTTPError: transport failures (timeouts, connection errors).
        """
        response = await self._http.get(
            f"{self._base_url}/users/{username}/events",
            headers=self._headers(),
        )
        if response.status_code != 200:
            raise GitHubAPIError(username, response.status_code, f"HTTP {response.status_code}")

        try:
            events = response.json()
        except ValueError as exc:
            raise GitHubAPIError(username, response.status_code, "invalid JSON body") from exc
        if not isinstance(events, list):
            raise GitHubAPIError(username, response.status_code, "expected a JSON list")
        return events


def _classify(raw: dict[str, Any]) -> Optional[ActivityKind]:
    event_type = raw.get("type")
    payload = raw.get("payload") or {}
    action = payload.get("action")

    if event_type == "RepositoryEvent":
        return ActivityKind.create_repo if action == "created" else None

    if event_type == "PullRequestEvent":
        if action == "opened":
            return ActivityKind.open_pr
        if action == "closed" and (payload.get("pull_request") or {}).get("merged"):
            return ActivityKind.merge_pr
        return None

    if event_type == "PushEvent":
        return ActivityKind.push_commits

    return None


def map_github_event(raw: dict[str, Any], user_id: int) -> Optional[ActivityEventIn]:
    """Map one raw GitHub event to an ActivityEventIn, or None to discard it."""
    kind = _classify(raw)
    if kind is None:
        return None

    payload = raw.get("payload") or {}
    fields: dict[str, Any] = {
        "id": raw.get("id"),
        "created_at": raw.get("created_at"),
        "user_id": user_id,
        "kind": kind,
        "repo_name": (raw.get("repo") or {}).get("name"),
    }
    if kind in (ActivityKind.open_pr, ActivityKind.merge_pr):
        fields["pr_number"] = payload.get("number")
    elif kind is ActivityKind.push_commits:
        fields["num_commits"] = payload.get("size")
        fields["head"] = payload.get("head")

    try:
        return ActivityEventIn.model_validate(fields)
    except ValidationError as exc:
        log.warning(
            "github_event_malformed",
            event_id=raw.get("id"),
            event_type=raw.get("type"),
            error=str(exc),
        )
        return None
