"""GitLab REST API client using httpx.

This module provides a typed synchronous interface to the GitLab REST API
for merge request retrieval. Every request is paced by a RateGovernor.
"""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from gitlab_mr_refs.config import GitLabConfig, get_settings
from gitlab_mr_refs.logging import get_logger
from gitlab_mr_refs.rate_limit import RateGovernor
from gitlab_mr_refs.rate_limit.governor import TOO_MANY_REQUESTS
from gitlab_mr_refs.rate_limit.schemas import RateLimitHeaders
from gitlab_mr_refs.schemas.gitlab_api import (
    GitLabMergeRequest,
    GitLabMergeRequestSummary,
    MergeRequestPage,
)

from .exceptions import (
    GitLabAuthenticationError,
    GitLabClientError,
    GitLabNotFoundError,
    GitLabRateLimitError,
    GitLabTransportError,
)

logger = get_logger(__name__)

MRState = Literal["opened", "closed", "merged", "locked", "all"]


class GitLabClient:
    """GitLab API client for merge request retrieval.

    Usage:
        with GitLabClient(token="glpat-...") as client:
            page = client.list_merge_requests("group/project")
            for mr in page.items:
                detail = client.get_merge_request("group/project", mr.iid)
                print(detail.head_sha)
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        *,
        governor: RateGovernor | None = None,
        config: GitLabConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the GitLab client.

        Args:
            token: GitLab access token. If not provided, uses GITLAB_TOKEN from settings.
            base_url: GitLab address (e.g., https://gitlab.example.com).
                      Defaults to the configured base URL.
            governor: RateGovernor pacing every request. A fresh one is
                      created when omitted.
            config: Optional client configuration (uses settings if not provided)
            transport: Optional httpx transport (tests use httpx.MockTransport)

        Raises:
            GitLabAuthenticationError: If no token is available.
        """
        settings = get_settings()
        self._token = token or settings.gitlab_token
        if not self._token:
            raise GitLabAuthenticationError(
                "GitLab token is required. Use --token flag or set GITLAB_TOKEN "
                "environment variable"
            )

        self._config = config or settings.gitlab
        self._base_url = (base_url or self._config.base_url).rstrip("/")
        if self._base_url != self._config.base_url.rstrip("/"):
            logger.info("Using custom GitLab base URL: {}", self._base_url)

        self._governor = governor or RateGovernor()
        self._http = httpx.Client(
            base_url=f"{self._base_url}/api/v4",
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/json",
                "User-Agent": self._config.user_agent,
            },
            timeout=self._config.request_timeout_seconds,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        """GitLab address this client talks to."""
        return self._base_url

    @property
    def governor(self) -> RateGovernor:
        """Access the rate governor pacing this client."""
        return self._governor

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()

    def __enter__(self) -> GitLabClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Merge Request Methods
    # -------------------------------------------------------------------------
    def list_merge_requests(
        self,
        project_path: str,
        *,
        page: int = 1,
        per_page: int = 100,
        state: MRState = "all",
    ) -> MergeRequestPage:
        """List one page of merge requests for a project.

        Note: listing entries have no diff_refs. Use get_merge_request()
        for the head commit.

        Args:
            project_path: Full project path (e.g., "group/subgroup/project")
            page: 1-based page number
            per_page: Results per page (max 100)
            state: Filter by state ("all" includes opened, closed and merged)

        Returns:
            MergeRequestPage with the summaries and the next page cursor
        """
        response = self._request(
            "GET",
            f"/projects/{_encode_path(project_path)}/merge_requests",
            params={"state": state, "per_page": per_page, "page": page},
        )
        payload = self._json(response)
        if not isinstance(payload, list):
            raise GitLabClientError(
                f"Unexpected merge request listing payload for {project_path}",
                status_code=response.status_code,
            )

        try:
            items = [GitLabMergeRequestSummary.model_validate(entry) for entry in payload]
        except ValidationError as e:
            raise GitLabClientError(
                f"Malformed merge request listing for {project_path}: {e}",
                status_code=response.status_code,
            ) from e

        return MergeRequestPage(
            items=items,
            page=page,
            next_page=_next_page(response.headers),
        )

    def get_merge_request(self, project_path: str, iid: int) -> GitLabMergeRequest:
        """Get the full record of one merge request.

        Args:
            project_path: Full project path
            iid: Merge request number within the project

        Returns:
            GitLabMergeRequest including diff_refs

        Raises:
            GitLabNotFoundError: If the merge request doesn't exist
        """
        response = self._request(
            "GET",
            f"/projects/{_encode_path(project_path)}/merge_requests/{iid}",
        )
        try:
            return GitLabMergeRequest.model_validate(self._json(response))
        except ValidationError as e:
            raise GitLabClientError(
                f"Malformed merge request !{iid} in {project_path}: {e}",
                status_code=response.status_code,
            ) from e

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one governed request, re-issuing throttled ones if configured."""
        max_retries = self._governor.config.max_throttle_retries
        attempt = 0
        while True:
            self._governor.before_request()
            try:
                response = self._http.request(method, path, params=params)
            except httpx.TransportError as e:
                raise GitLabTransportError(f"Request to {path} failed: {e}") from e
            self._governor.after_response(response.headers, response.status_code)

            if response.status_code == TOO_MANY_REQUESTS and attempt < max_retries:
                attempt += 1
                logger.info("Re-issuing throttled request (attempt {}/{})", attempt, max_retries)
                continue
            break

        if response.is_success:
            return response
        raise self._handle_error(response)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise GitLabClientError(
                f"Invalid JSON from {response.request.url.path}",
                status_code=response.status_code,
            ) from e

    def _handle_error(self, response: httpx.Response) -> GitLabClientError:
        """Convert an error response to our custom exceptions."""
        status = response.status_code
        message = _error_message(response)

        if status in (401, 403):
            return GitLabAuthenticationError(f"GitLab API error ({status}): {message}", status)
        if status == 404:
            return GitLabNotFoundError(f"GitLab API error (404): {message}", status)
        if status == TOO_MANY_REQUESTS:
            retry_after = RateLimitHeaders.from_headers(response.headers).retry_after
            return GitLabRateLimitError("GitLab rate limit exceeded", retry_after=retry_after)
        return GitLabClientError(f"GitLab API error ({status}): {message}", status)


def _encode_path(project_path: str) -> str:
    """URL-encode a project path for use as the :id segment."""
    return quote(project_path, safe="")


def _next_page(headers: httpx.Headers) -> int:
    """Read the X-Next-Page cursor (empty or missing means last page)."""
    value = headers.get("X-Next-Page", "").strip()
    if not value:
        return 0
    try:
        return max(0, int(value))
    except ValueError:
        return 0


def _error_message(response: httpx.Response) -> str:
    """Extract GitLab's error message, falling back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or "request failed"
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return response.reason_phrase or "request failed"
