"""Result objects for fetch runs.

Structured results provide consistent interfaces for monitoring
and CLI output.
"""

from dataclasses import dataclass


@dataclass
class FetchResult:
    """Statistics of a completed merge request export."""

    project_path: str
    """Project that was walked."""

    pages: int = 0
    """Listing pages retrieved."""

    visited: int = 0
    """Merge requests whose detail record was fetched."""

    emitted: int = 0
    """References handed to the sink."""

    skipped: int = 0
    """Merge requests without a head commit (diff not prepared yet)."""

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "project_path": self.project_path,
            "pages": self.pages,
            "visited": self.visited,
            "emitted": self.emitted,
            "skipped": self.skipped,
        }
