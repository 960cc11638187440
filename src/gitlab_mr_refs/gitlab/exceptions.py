"""GitLab client and fetch pipeline exceptions."""


class GitLabClientError(Exception):
    """Base exception for GitLab client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitLabAuthenticationError(GitLabClientError):
    """Raised when the token is missing or rejected (401/403)."""

    pass


class GitLabNotFoundError(GitLabClientError):
    """Raised when a project or merge request is not found (404)."""

    pass


class GitLabRateLimitError(GitLabClientError):
    """Raised when a request is still throttled (429) after waiting."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class GitLabTransportError(GitLabClientError):
    """Raised when no HTTP response was received (connection, timeout)."""

    pass


# -----------------------------------------------------------------------------
# Fetch pipeline
# -----------------------------------------------------------------------------
class FetchError(Exception):
    """Base exception for a failed merge request export.

    The original failure is always available as ``__cause__``.
    """

    pass


class PageFetchError(FetchError):
    """Raised when a listing page could not be retrieved."""

    def __init__(self, page: int, error: Exception) -> None:
        super().__init__(f"failed to fetch merge requests (page {page}): {error}")
        self.page = page


class MergeRequestFetchError(FetchError):
    """Raised when a merge request detail lookup failed."""

    def __init__(self, iid: int, error: Exception) -> None:
        super().__init__(f"failed to fetch merge request {iid}: {error}")
        self.iid = iid


class SinkError(FetchError):
    """Raised when the sink rejected a merge request reference."""

    def __init__(self, iid: int, error: Exception) -> None:
        super().__init__(f"failed to process merge request {iid}: {error}")
        self.iid = iid


class FetchCancelledError(FetchError):
    """Raised when a run is cancelled between listing pages."""

    def __init__(self, page: int) -> None:
        super().__init__(f"fetch cancelled before page {page}")
        self.page = page


class RepositoryNotFoundError(FetchError):
    """Raised when the project does not exist or is not visible to the token."""

    pass


class RepositoryAccessError(FetchError):
    """Raised when the token is not allowed to read the project."""

    pass
