"""Common CLI option factories and helpers.

This module centralizes reusable CLI options and provides:
- `run_command`: Unified error handling for CLI commands
- `validate_repo` / `validate_create_refs_flags`: input checks that
  print a friendly message and exit with code 1
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from rich.console import Console

# Shared console instance for CLI output
console = Console()

T = TypeVar("T")


def run_command(
    func: Callable[[], T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Execute a CLI command body with unified error handling.

    Catches exceptions, prints user-friendly error messages, and exits
    with code 1.

    Args:
        func: Zero-argument callable holding the command's work
        error_prefix: Prefix for error messages (default: "Error")

    Returns:
        Result from the callable

    Raises:
        typer.Exit: Re-raised from deliberate exits, or raised with code 1 on error

    Example:
        def _fetch() -> int:
            with GitLabClient() as client:
                return len(MergeRequestFetcher(client).collect("group/project"))

        count = run_command(_fetch)
    """
    try:
        return func()
    except typer.Exit:
        # Re-raise deliberate exits (e.g., from validation helpers)
        raise
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}", highlight=False)
        raise typer.Exit(1) from None


def fail(message: str) -> typer.Exit:
    """Print an error message and return the exit to raise."""
    console.print(f"[red]Error:[/red] {message}", highlight=False)
    return typer.Exit(1)


# Typer requires function calls as default arguments, which triggers B008.
# Using Annotated with a centralized type alias keeps the noqa in one place.

BaseUrlOption = Annotated[
    str | None,
    typer.Option(
        "--base-url",
        "-b",
        help="GitLab base URL (default: https://gitlab.com)",
    ),
]
"""GitLab address override.

Usage:
    def command(base_url: BaseUrlOption = None):
"""

GitLabTokenOption = Annotated[
    str | None,
    typer.Option(
        "--token",
        "-t",
        help="GitLab access token (can also use GITLAB_TOKEN environment variable)",
        show_default=False,
    ),
]

GitHubTokenOption = Annotated[
    str | None,
    typer.Option(
        "--token",
        "-t",
        help="GitHub access token (can also use GITHUB_TOKEN environment variable)",
        show_default=False,
    ),
]

OutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Output CSV file path (default: auto-generated from repository name)",
    ),
]

# -----------------------------------------------------------------------------
# Validation Helpers
# -----------------------------------------------------------------------------


def validate_repo(repo: str) -> tuple[str, str]:
    """Parse and validate a GitHub repository string.

    Returns:
        Tuple of (owner, name)

    Raises:
        typer.Exit(1): If format is invalid
    """
    from gitlab_mr_refs.schemas import parse_repo_string

    try:
        return parse_repo_string(repo)
    except ValueError:
        raise fail("Repository must be in owner/name format") from None


def validate_create_refs_flags(
    repository: str | None,
    fetch: bool,
    input_file: str | None,
) -> None:
    """Check the flag combination accepted by create-refs.

    Only empty values are rejected; their content is validated later.

    Raises:
        ValueError: With the message shown to the operator
    """
    if not repository:
        raise ValueError("--repository is required")
    if not fetch and not input_file:
        raise ValueError("--input is required unless --fetch is used")
