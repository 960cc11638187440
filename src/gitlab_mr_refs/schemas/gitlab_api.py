"""Pydantic schemas for parsing GitLab API responses.

These schemas map to the GitLab REST API merge request payloads.
See: https://docs.gitlab.com/api/merge_requests/
"""

from pydantic import BaseModel, ConfigDict, Field


class GitLabDiffRefs(BaseModel):
    """The commit triple bounding a merge request's comparison."""

    base_sha: str | None = Field(default=None, description="Merge base commit")
    head_sha: str | None = Field(default=None, description="Tip of the source branch")
    start_sha: str | None = Field(default=None, description="Target branch tip at diff time")


class GitLabMergeRequestSummary(BaseModel):
    """Merge request entry from the project listing endpoint.

    Maps to: GET /projects/:id/merge_requests

    Note: listing entries carry no diff_refs, so the head commit
    needs a detail lookup.
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(description="Global merge request ID")
    iid: int = Field(description="Project-scoped merge request number")
    state: str | None = Field(default=None, description="opened, closed, merged or locked")
    title: str | None = Field(default=None, description="Merge request title")


class GitLabMergeRequest(BaseModel):
    """Full merge request record.

    Maps to: GET /projects/:id/merge_requests/:merge_request_iid
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(description="Global merge request ID")
    iid: int = Field(description="Project-scoped merge request number")
    state: str | None = Field(default=None, description="opened, closed, merged or locked")
    diff_refs: GitLabDiffRefs | None = Field(
        default=None,
        description="Diff boundary commits (null while GitLab prepares the diff)",
    )

    @property
    def head_sha(self) -> str:
        """Head commit of the diff, or an empty string when unknown."""
        if self.diff_refs is None:
            return ""
        return (self.diff_refs.head_sha or "").strip()


class MergeRequestPage(BaseModel):
    """One page of merge request summaries plus the pagination cursor."""

    items: list[GitLabMergeRequestSummary] = Field(default_factory=list)
    page: int = Field(ge=1, description="Page number that was requested")
    next_page: int = Field(
        default=0,
        ge=0,
        description="Next page number from X-Next-Page (0 when this is the last page)",
    )

    @property
    def is_last(self) -> bool:
        """Whether the platform reported no further page."""
        return self.next_page == 0
