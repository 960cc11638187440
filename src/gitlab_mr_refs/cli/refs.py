"""Merge request reference commands: fetch-ref, create-refs, show."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from gitlab_mr_refs.cli.common import (
    BaseUrlOption,
    GitHubTokenOption,
    GitLabTokenOption,
    OutputOption,
    console,
    fail,
    run_command,
    validate_create_refs_flags,
    validate_repo,
)
from gitlab_mr_refs.config import get_settings
from gitlab_mr_refs.github import GitHubRefCreator, RefCreationResult, generate_branch_name
from gitlab_mr_refs.gitlab import GitLabClient, MergeRequestFetcher
from gitlab_mr_refs.logging import LogContext
from gitlab_mr_refs.schemas import (
    MergeRequestRef,
    generate_filename,
    parse_repo_path,
    resolve_base_url,
)
from gitlab_mr_refs.storage import CsvRefSink, read_refs


def _gitlab_client(repository: str, token: str | None, base_url: str | None) -> GitLabClient:
    """Build a client for the GitLab instance a repository lives on."""
    locator = parse_repo_path(repository)
    url = resolve_base_url(locator, base_url, get_settings().gitlab.base_url)
    return GitLabClient(token=token, base_url=url)


def fetch_ref(
    repository: Annotated[
        str,
        typer.Argument(
            help="GitLab repository path (group/project) or URL",
            show_default=False,
        ),
    ],
    token: GitLabTokenOption = None,
    base_url: BaseUrlOption = None,
    output: OutputOption = None,
) -> None:
    """Fetch merge request references from a GitLab repository.

    Writes one "<iid>,<head_sha>" line per merge request that has a head
    commit. Merge requests in every state are included.

    Examples:
        glrefs fetch-ref group/project
        glrefs fetch-ref https://gitlab.example.com/group/sub/project.git -o refs.csv
    """

    def _fetch() -> tuple[int, Path]:
        settings = get_settings()
        project_path = parse_repo_path(repository).project_path
        output_path = output or Path(generate_filename(repository))

        with _gitlab_client(repository, token, base_url) as client:
            fetcher = MergeRequestFetcher(client, per_page=settings.gitlab.per_page)
            with (
                LogContext(project=project_path),
                CsvRefSink(output_path) as sink,
                console.status(f"Fetching merge requests from {project_path}..."),
            ):
                fetcher.fetch_repository(repository, sink)

        return sink.count, sink.path

    count, path = run_command(_fetch)

    if count == 0:
        console.print("No merge requests found in the repository")
        return

    console.print(f"Found {count} merge requests")
    console.print(
        f"[green]Successfully exported merge request references to:[/green] {path}",
        highlight=False,
    )


def create_refs(
    repository: Annotated[
        str | None,
        typer.Option(
            "--repository",
            "-r",
            help="Target GitHub repository (owner/name)",
            show_default=False,
        ),
    ] = None,
    input_file: Annotated[
        Path | None,
        typer.Option(
            "--input",
            "-i",
            help="CSV file produced by fetch-ref",
            show_default=False,
        ),
    ] = None,
    fetch: Annotated[
        bool,
        typer.Option(
            "--fetch",
            help="Fetch references from GitLab instead of reading a file",
        ),
    ] = False,
    source: Annotated[
        str | None,
        typer.Option(
            "--source",
            "-s",
            help="GitLab repository to fetch from (default: same path as --repository)",
            show_default=False,
        ),
    ] = None,
    token: GitHubTokenOption = None,
    gitlab_token: Annotated[
        str | None,
        typer.Option(
            "--gitlab-token",
            help="GitLab access token for --fetch (can also use GITLAB_TOKEN)",
            show_default=False,
        ),
    ] = None,
    base_url: BaseUrlOption = None,
) -> None:
    """Create one GitHub branch per merge request reference.

    Branches are named migration-pr-<iid> and point at the merge
    request's head commit. Existing branches are left untouched.

    Examples:
        glrefs create-refs -r owner/repo -i group-project.csv
        glrefs create-refs -r owner/repo --fetch --source group/project
    """
    try:
        validate_create_refs_flags(
            repository, fetch, str(input_file) if input_file is not None else None
        )
    except ValueError as e:
        raise fail(str(e)) from None

    assert repository is not None
    owner, name = validate_repo(repository)

    def _create() -> RefCreationResult | None:
        creator = GitHubRefCreator(token=token)

        refs: list[MergeRequestRef]
        if fetch:
            gitlab_repo = source or repository
            with _gitlab_client(gitlab_repo, gitlab_token, base_url) as client:
                fetcher = MergeRequestFetcher(client, per_page=get_settings().gitlab.per_page)
                with console.status(f"Fetching merge requests from {gitlab_repo}..."):
                    refs = []
                    fetcher.fetch_repository(gitlab_repo, refs.append)
        else:
            assert input_file is not None
            refs = read_refs(input_file)

        if not refs:
            return None

        with (
            LogContext(repository=repository),
            console.status(f"Creating {len(refs)} branches in {repository}..."),
        ):
            return creator.create_refs(owner, name, refs)

    result = run_command(_create)

    if result is None:
        console.print("No merge request references to create")
        return

    table = Table(title=f"Branches in {repository}")
    table.add_column("Result")
    table.add_column("Count", justify="right")
    table.add_row("[green]Created[/green]", str(result.created))
    table.add_row("[yellow]Already existed[/yellow]", str(result.skipped))
    table.add_row("[bold]Total[/bold]", str(result.total))
    console.print(table)


def show(
    file: Annotated[
        Path,
        typer.Argument(help="CSV file produced by fetch-ref", show_default=False),
    ],
) -> None:
    """Show the merge request references stored in a file."""
    refs = run_command(lambda: read_refs(file))
    prefix = get_settings().github.branch_prefix

    if not refs:
        console.print(f"No merge request references in {file}")
        return

    table = Table(title=str(file))
    table.add_column("MR", style="cyan", justify="right")
    table.add_column("Head SHA")
    table.add_column("Branch")
    for ref in refs:
        table.add_row(f"!{ref.iid}", ref.head_sha, generate_branch_name(ref.iid, prefix))

    console.print(table)
    console.print(f"{len(refs)} references")
