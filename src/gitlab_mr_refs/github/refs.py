"""Create migration branches on GitHub from merge request references.

Each reference becomes a branch named ``<prefix><iid>`` pointing at the
merge request's head commit, so the pull requests can be recreated on
GitHub after the repository has been pushed.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from githubkit import GitHub
from githubkit.exception import RequestFailed

from gitlab_mr_refs.config import get_settings
from gitlab_mr_refs.logging import get_logger
from gitlab_mr_refs.rate_limit import RateGovernor
from gitlab_mr_refs.schemas.refs import MergeRequestRef

from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
)

logger = get_logger(__name__)

DEFAULT_BRANCH_PREFIX = "migration-pr-"
UNPROCESSABLE = 422


def generate_branch_name(number: int, prefix: str = DEFAULT_BRANCH_PREFIX) -> str:
    """Build the migration branch name for a merge request number."""
    return f"{prefix}{number}"


def _error_message(error: RequestFailed) -> str:
    """Extract the ``message`` field GitHub puts in error bodies."""
    text = getattr(error.response, "text", "") or ""
    try:
        body = json.loads(text)
    except ValueError:
        return text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return text


def _ref_exists(error: RequestFailed) -> bool:
    """Only "Reference already exists" counts as a skip; other 422s are errors."""
    if error.response.status_code != UNPROCESSABLE:
        return False
    return "already exists" in _error_message(error).lower()


@dataclass
class RefCreationResult:
    """Outcome of a create-refs run."""

    created: int = 0
    """Branches created."""

    skipped: int = 0
    """Branches that already existed."""

    branches: list[str] = field(default_factory=list)
    """Names of the branches created, in creation order."""

    @property
    def total(self) -> int:
        return self.created + self.skipped

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "created": self.created,
            "skipped": self.skipped,
            "branches": list(self.branches),
        }


class GitHubRefCreator:
    """Creates one branch per merge request reference.

    Requests are sequential and paced by a RateGovernor, the same way the
    GitLab client paces its requests.

    Usage:
        creator = GitHubRefCreator(token="ghp_...")
        result = creator.create_refs("owner", "repo", refs)
        print(f"{result.created} branches created")
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        governor: RateGovernor | None = None,
        github: GitHub[Any] | None = None,
        branch_prefix: str | None = None,
    ) -> None:
        """Initialize the ref creator.

        Args:
            token: GitHub PAT. If not provided, uses GITHUB_TOKEN from settings.
            governor: RateGovernor pacing every request. A fresh one is
                      created when omitted.
            github: Optional preconfigured githubkit client
            branch_prefix: Branch name prefix (defaults to configuration)

        Raises:
            GitHubAuthenticationError: If no token is available.
        """
        settings = get_settings()
        self._token = token or settings.github_token
        if not self._token and github is None:
            raise GitHubAuthenticationError(
                "GitHub token is required. Use --token flag or set GITHUB_TOKEN "
                "environment variable"
            )
        self._github: GitHub[Any] = github or GitHub(self._token, auto_retry=False)
        self._governor = governor or RateGovernor()
        self._branch_prefix = branch_prefix or settings.github.branch_prefix

    @property
    def governor(self) -> RateGovernor:
        """Access the rate governor pacing this creator."""
        return self._governor

    def branch_name(self, ref: MergeRequestRef) -> str:
        return generate_branch_name(ref.iid, self._branch_prefix)

    def create_branch(self, owner: str, repo: str, branch: str, sha: str) -> bool:
        """Create ``refs/heads/<branch>`` pointing at ``sha``.

        Returns:
            True if the branch was created, False if it already existed

        Raises:
            GitHubAuthenticationError: If the token was rejected
            GitHubNotFoundError: If the repository or commit doesn't exist
            GitHubClientError: For any other failure
        """
        self._governor.before_request()
        try:
            resp = self._github.rest.git.create_ref(
                owner,
                repo,
                ref=f"refs/heads/{branch}",
                sha=sha,
            )
        except RequestFailed as e:
            self._governor.after_response(e.response.headers, e.response.status_code)
            if _ref_exists(e):
                logger.debug("Branch {} already exists in {}/{}", branch, owner, repo)
                return False
            raise self._handle_error(e, owner, repo) from e

        self._governor.after_response(resp.headers, resp.status_code)
        logger.debug("Created branch {} at {} in {}/{}", branch, sha[:12], owner, repo)
        return True

    def create_refs(
        self,
        owner: str,
        repo: str,
        refs: Iterable[MergeRequestRef],
    ) -> RefCreationResult:
        """Create a migration branch for every reference.

        Fail-fast: the first error other than "already exists" aborts the
        run. Branches created before the failure stay in place.
        """
        result = RefCreationResult()
        for ref in refs:
            branch = self.branch_name(ref)
            if self.create_branch(owner, repo, branch, ref.head_sha):
                result.created += 1
                result.branches.append(branch)
            else:
                result.skipped += 1

        logger.info(
            "Created {} branches in {}/{} ({} already existed)",
            result.created,
            owner,
            repo,
            result.skipped,
        )
        return result

    def _handle_error(self, error: RequestFailed, owner: str, repo: str) -> GitHubClientError:
        """Convert githubkit exceptions to our custom exceptions."""
        status = error.response.status_code
        if status in (401, 403):
            return GitHubAuthenticationError(
                f"GitHub API error ({status}): check that your token can write to {owner}/{repo}",
                status,
            )
        if status == 404:
            return GitHubNotFoundError(f"Repository {owner}/{repo} not found", status)
        message = _error_message(error) or str(error)
        return GitHubClientError(f"GitHub API error ({status}): {message}", status)
