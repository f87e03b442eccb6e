"""State embedded in a posted coverage comment."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentMetadata(BaseModel):
    """Metadata round-tripped through the comment body as inline JSON.

    Serialized with ``by_alias=True`` so the version lands under the
    ``version`` key.
    """

    model_config = ConfigDict(populate_by_name=True)

    signature: str
    comment_version: str = Field(default="2.0", alias="version")
    created_at: datetime
    last_updated_at: datetime
    update_count: int = Field(default=1, ge=1)
    pr_number: int
    base_sha: str = ""
    head_sha: str = ""
