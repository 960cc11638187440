"""GitHub branch creation for migrated merge requests."""

from .exceptions import GitHubAuthenticationError, GitHubClientError, GitHubNotFoundError
from .refs import GitHubRefCreator, RefCreationResult, generate_branch_name

__all__ = [
    "GitHubAuthenticationError",
    "GitHubClientError",
    "GitHubNotFoundError",
    "GitHubRefCreator",
    "RefCreationResult",
    "generate_branch_name",
]
