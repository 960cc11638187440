"""Repository path parsing for GitLab projects and GitHub repositories."""

import re
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from gitlab_mr_refs.logging import get_logger

logger = get_logger(__name__)

# group/project, group/subgroup/project, ...
_PROJECT_PATH_RE = re.compile(r"^[a-zA-Z0-9._-]+(/[a-zA-Z0-9._-]+)+$")


class ProjectLocator(BaseModel):
    """A GitLab project path, plus the instance address when one was given."""

    base_url: str | None = Field(
        default=None,
        description="scheme://host taken from a full URL (None for bare paths)",
    )
    project_path: str = Field(
        min_length=1,
        description="Full project path (e.g., 'group/subgroup/project')",
    )


def parse_repo_path(repo: str) -> ProjectLocator:
    """Parse the accepted GitLab repository formats.

    Accepted forms:
        https://gitlab.example.com/group/project(.git)
        group/project
        group/subgroup/.../project

    Args:
        repo: Repository as typed by the operator

    Returns:
        ProjectLocator with the project path and optional base URL

    Raises:
        ValueError: If the string is neither a URL nor a valid path
    """
    if repo.startswith("http"):
        parsed = urlparse(repo)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"invalid URL: {repo}")

        path = parsed.path.strip("/")
        path = path.removesuffix(".git")
        if not path:
            raise ValueError(f"URL does not name a project: {repo}")

        return ProjectLocator(base_url=f"{parsed.scheme}://{parsed.netloc}", project_path=path)

    if not _PROJECT_PATH_RE.match(repo):
        raise ValueError(f"invalid repository path format: {repo}")

    return ProjectLocator(project_path=repo)


def resolve_base_url(locator: ProjectLocator, override: str | None, default: str) -> str:
    """Pick the GitLab address for a run.

    An explicit override always wins, then the address embedded in a
    full repository URL, then the configured default. A conflicting
    override is honoured but reported.
    """
    if override:
        if locator.base_url and locator.base_url.rstrip("/") != override.rstrip("/"):
            logger.warning(
                "Base URL {} overrides {} from the repository URL",
                override,
                locator.base_url,
            )
        return override
    if locator.base_url:
        return locator.base_url
    return default


def generate_filename(repo: str) -> str:
    """Derive a CSV filename from a repository path or URL.

    Example:
        https://gitlab.com/group/sub/project.git -> group-sub-project.csv
    """
    name = repo
    if "://" in name:
        parts = name.split("/")
        if len(parts) >= 4:
            name = "/".join(parts[3:])

    name = name.removesuffix(".git")
    name = name.replace("/", "-")
    return f"{name}.csv"


def parse_repo_string(repo: str) -> tuple[str, str]:
    """Split a GitHub repository string into owner and name.

    Args:
        repo: Repository in owner/name format

    Returns:
        Tuple of (owner, name)

    Raises:
        ValueError: If the string is not exactly owner/name
    """
    parts = repo.strip().split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Repository must be in owner/name format: {repo}")
    return parts[0], parts[1]
