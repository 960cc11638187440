"""Merge request fetcher - List → Detail → Sink pipeline.

Walks every listing page of a project, looks up each merge request's
detail record for its diff_refs, and streams one MergeRequestRef per
merge request with a head commit to a caller-supplied sink.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from gitlab_mr_refs.logging import bind_merge_request, bind_project
from gitlab_mr_refs.schemas.refs import MergeRequestRef
from gitlab_mr_refs.schemas.repository import parse_repo_path

from .client import GitLabClient
from .exceptions import (
    FetchCancelledError,
    FetchError,
    GitLabAuthenticationError,
    GitLabClientError,
    GitLabNotFoundError,
    MergeRequestFetchError,
    PageFetchError,
    RepositoryAccessError,
    RepositoryNotFoundError,
    SinkError,
)
from .results import FetchResult

RefSink = Callable[[MergeRequestRef], object]
"""Receives each reference; signals failure by raising."""


class MergeRequestFetcher:
    """Streams merge request references of a project to a sink.

    The run is strictly sequential: one request at a time, each paced by
    the client's rate governor. References reach the sink in the order
    the platform lists merge requests, and nothing is buffered.

    Usage:
        with GitLabClient() as client, CsvRefSink(path) as sink:
            fetcher = MergeRequestFetcher(client)
            result = fetcher.fetch("group/project", sink)
            print(f"{result.emitted} references written")
    """

    def __init__(self, client: GitLabClient, *, per_page: int = 100) -> None:
        """Initialize the fetcher.

        Args:
            client: GitLab API client (owns the rate governor)
            per_page: Listing page size (GitLab maximum is 100)
        """
        self._client = client
        self._per_page = per_page

    def fetch(
        self,
        project_path: str,
        sink: RefSink,
        *,
        cancel: threading.Event | None = None,
    ) -> FetchResult:
        """Visit every merge request of a project and offer it to the sink.

        Flow, per listing page:
            1. List one page (state=all)
            2. For each summary, fetch the detail record
            3. Skip it if diff_refs has no head commit
            4. Otherwise hand a MergeRequestRef to the sink
            5. Follow the next page cursor until it reports none

        Args:
            project_path: Validated project path (e.g., "group/project")
            sink: Callable receiving each reference
            cancel: Optional event checked before each listing page

        Returns:
            FetchResult with run statistics

        Raises:
            PageFetchError: If a listing page failed
            MergeRequestFetchError: If a detail lookup failed
            SinkError: If the sink raised
            FetchCancelledError: If cancel was set

        Note:
            Fail-fast: the first error aborts the run. References already
            accepted by the sink stay accepted.
        """
        project_logger = bind_project(project_path)
        result = FetchResult(project_path=project_path)
        page = 1

        while True:
            if cancel is not None and cancel.is_set():
                raise FetchCancelledError(page)

            try:
                listing = self._client.list_merge_requests(
                    project_path, page=page, per_page=self._per_page, state="all"
                )
            except GitLabClientError as e:
                raise PageFetchError(page, e) from e

            result.pages += 1
            project_logger.info(
                "Processing page {}: found {} merge requests", result.pages, len(listing.items)
            )

            for summary in listing.items:
                try:
                    detail = self._client.get_merge_request(project_path, summary.iid)
                except GitLabClientError as e:
                    raise MergeRequestFetchError(summary.iid, e) from e
                result.visited += 1

                if not detail.head_sha:
                    bind_merge_request(project_path, detail.iid).debug(
                        "No head commit in diff_refs, skipping"
                    )
                    result.skipped += 1
                    continue

                ref = MergeRequestRef(id=detail.id, iid=detail.iid, head_sha=detail.head_sha)
                try:
                    sink(ref)
                except Exception as e:
                    raise SinkError(ref.iid, e) from e
                result.emitted += 1

            if listing.is_last:
                break
            page = listing.next_page

        project_logger.info(
            "Fetched {} merge requests ({} exported, {} without head commit)",
            result.visited,
            result.emitted,
            result.skipped,
        )
        return result

    def collect(self, project_path: str) -> list[MergeRequestRef]:
        """Fetch every reference of a project into a list.

        Convenience wrapper over fetch() for callers that want the whole
        set in memory.
        """
        refs: list[MergeRequestRef] = []
        self.fetch(project_path, refs.append)
        return refs

    def fetch_repository(
        self,
        repo: str,
        sink: RefSink,
        *,
        cancel: threading.Event | None = None,
    ) -> str:
        """Parse an operator-supplied repository and fetch its references.

        The base URL of a full repository URL is not used here; it is
        resolved when the client is built.

        Args:
            repo: Repository path or URL
            sink: Callable receiving each reference
            cancel: Optional cancellation event

        Returns:
            The project path that was fetched

        Raises:
            ValueError: If the repository string is invalid
            RepositoryNotFoundError: If the project is missing or invisible
            RepositoryAccessError: If the token was rejected
            FetchError: For any other pipeline failure
        """
        project_path = parse_repo_path(repo).project_path
        try:
            self.fetch(project_path, sink, cancel=cancel)
        except FetchError as e:
            explained = _explain(e, project_path)
            if explained is None:
                raise
            raise explained from e
        return project_path


def _explain(error: FetchError, project_path: str) -> FetchError | None:
    """Translate common client failures into operator-facing errors."""
    cause = error.__cause__
    if isinstance(error, PageFetchError) and isinstance(cause, GitLabNotFoundError):
        return RepositoryNotFoundError(
            f"repository not found: {project_path}. "
            "Please check the repository path and your access permissions"
        )
    if isinstance(error, PageFetchError | MergeRequestFetchError) and isinstance(
        cause, GitLabAuthenticationError
    ):
        return RepositoryAccessError(
            "authentication failed: please check your GitLab token has access "
            f"to repository {project_path}"
        )
    return None
