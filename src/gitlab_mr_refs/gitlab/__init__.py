"""GitLab API module.

This module provides:
- GitLabClient: GitLab REST client paced by a RateGovernor
- MergeRequestFetcher: paginated merge request reference export
- Exceptions for client and pipeline failures
"""

from .client import GitLabClient
from .exceptions import (
    FetchCancelledError,
    FetchError,
    GitLabAuthenticationError,
    GitLabClientError,
    GitLabNotFoundError,
    GitLabRateLimitError,
    GitLabTransportError,
    MergeRequestFetchError,
    PageFetchError,
    RepositoryAccessError,
    RepositoryNotFoundError,
    SinkError,
)
from .fetcher import MergeRequestFetcher, RefSink
from .results import FetchResult

__all__ = [
    # Client
    "GitLabClient",
    # Fetcher
    "FetchResult",
    "MergeRequestFetcher",
    "RefSink",
    # Client exceptions
    "GitLabAuthenticationError",
    "GitLabClientError",
    "GitLabNotFoundError",
    "GitLabRateLimitError",
    "GitLabTransportError",
    # Pipeline exceptions
    "FetchCancelledError",
    "FetchError",
    "MergeRequestFetchError",
    "PageFetchError",
    "RepositoryAccessError",
    "RepositoryNotFoundError",
    "SinkError",
]
