"""Pull request model."""

from pydantic import BaseModel, Field


class PullRequest(BaseModel):
    """Pull request fields needed for reporting (head SHA and labels)."""

    number: int
    title: str = ""
    state: str = "open"
    head_sha: str = ""
    base_sha: str = ""
    labels: list[str] = Field(default_factory=list)
