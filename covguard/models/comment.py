"""Comment on a pull request and the decisions taken about it."""

from typing import Literal

from pydantic import BaseModel

from covguard.models.coverage import CoverageComparison
from covguard.models.metadata import CommentMetadata


class Comment(BaseModel):
    """PR (issue) comment as returned by the API.

    Timestamps are kept as the ISO-8601 strings the API returns; callers
    parse them when they need to.
    """

    id: int
    body: str = ""
    author: str = ""
    created_at: str = ""
    updated_at: str = ""


class CommentAction(BaseModel):
    """Anti-spam decision for the next coverage comment."""

    action: Literal["create", "update", "skip"]
    should_post: bool
    reason: str


class PRCommentResponse(BaseModel):
    """Outcome of a create-or-update cycle."""

    comment_id: int | None = None
    action: Literal["created", "updated", "skipped"]
    reason: str
    metadata: CommentMetadata | None = None
    coverage_data: CoverageComparison
