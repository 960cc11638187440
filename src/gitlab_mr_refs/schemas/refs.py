"""Pydantic schema for the unit of output: one merge request reference."""

from pydantic import BaseModel, ConfigDict, Field


class MergeRequestRef(BaseModel):
    """A merge request number paired with the head commit of its diff.

    Instances are frozen: once handed to a sink they are final.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int | None = Field(
        default=None,
        description="Platform-global merge request ID (None when read back from a file)",
    )
    iid: int = Field(gt=0, description="Project-scoped merge request number")
    head_sha: str = Field(min_length=1, description="Head commit SHA from diff_refs")
