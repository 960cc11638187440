"""Pydantic schemas for gitlab-mr-refs.

This module provides API payload models and the exported reference model.
"""

from .gitlab_api import (
    GitLabDiffRefs,
    GitLabMergeRequest,
    GitLabMergeRequestSummary,
    MergeRequestPage,
)
from .refs import MergeRequestRef
from .repository import (
    ProjectLocator,
    generate_filename,
    parse_repo_path,
    parse_repo_string,
    resolve_base_url,
)

__all__ = [
    # GitLab API
    "GitLabDiffRefs",
    "GitLabMergeRequest",
    "GitLabMergeRequestSummary",
    "MergeRequestPage",
    # Output
    "MergeRequestRef",
    # Repository paths
    "ProjectLocator",
    "generate_filename",
    "parse_repo_path",
    "parse_repo_string",
    "resolve_base_url",
]
