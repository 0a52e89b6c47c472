"""
GitLab REST API client.

Thin wrapper over the v4 API covering the three calls the combiner needs:
project metadata, labeled open merge requests, and merge request notes.
"""

import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from mr_combiner.models.gitlab import MergeRequest, RepoInfo
from mr_combiner.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


class GitLabAPIError(Exception):
    """GitLab API call failed; the message carries the raw response body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GitLabClient:
    """
    Synchronous GitLab API client authenticated with a bearer token.

    Calls are made once; there is no retry. Non-2xx responses and transport
    errors surface as GitLabAPIError.
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_url: API base URL, e.g. https://gitlab.com/api/v4
            token: Personal or project access token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_url = api_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.api_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {token}",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        start_time = time.time()
        try:
            response = self._client.request(method, endpoint, params=params, json=json)
        except httpx.HTTPError as e:
            log_api_call(logger, "gitlab", endpoint, method, error=str(e))
            raise GitLabAPIError(str(e)) from e

        duration_ms = (time.time() - start_time) * 1000
        if response.status_code >= 400:
            log_api_call(
                logger, "gitlab", endpoint, method,
                status_code=response.status_code,
                duration_ms=duration_ms,
                error=response.text,
            )
            raise GitLabAPIError(response.text, status_code=response.status_code)

        log_api_call(
            logger, "gitlab", endpoint, method,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return response

    def _get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self._send("GET", endpoint, params=params)
        if not response.content:
            raise GitLabAPIError("empty response from GitLab API")
        try:
            return response.json()
        except ValueError as e:
            raise GitLabAPIError(f"invalid JSON from GitLab API: {e}") from e

    def get_repo_info(self, project_id: int) -> RepoInfo:
        """Fetch default branch and clone URL of a project."""
        payload = self._get_json(f"/projects/{project_id}")
        try:
            return RepoInfo.model_validate(payload)
        except ValidationError as e:
            raise GitLabAPIError(f"unexpected project payload: {e}") from e

    def list_merge_requests(self, project_id: int, label: str) -> List[MergeRequest]:
        """Open merge requests of a project carrying a label, in API order."""
        payload = self._get_json(
            f"/projects/{project_id}/merge_requests",
            params={"state": "opened", "labels": label},
        )
        if not isinstance(payload, list):
            raise GitLabAPIError("unexpected merge request listing payload")
        try:
            return [MergeRequest.model_validate(item) for item in payload]
        except ValidationError as e:
            raise GitLabAPIError(f"unexpected merge request payload: {e}") from e

    def create_note(self, project_id: int, merge_request_iid: int, body: str) -> None:
        """Post a comment on a merge request."""
        self._send(
            "POST",
            f"/projects/{project_id}/merge_requests/{merge_request_iid}/notes",
            json={"body": body},
        )


def get_gitlab_client() -> GitLabClient:
    """Client built from application settings."""
    from mr_combiner.config import settings
    return GitLabClient(
        api_url=settings.gitlab_api_url,
        token=settings.gitlab_token,
        timeout=settings.gitlab_timeout_seconds,
    )
