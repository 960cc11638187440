"""GitHub ref creation exceptions."""


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthenticationError(GitHubClientError):
    """Raised when the token is missing or rejected (401/403)."""

    pass


class GitHubNotFoundError(GitHubClientError):
    """Raised when the target repository or commit is not found (404)."""

    pass
