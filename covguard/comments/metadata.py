"""Round-trip CommentMetadata through the comment body.

The metadata is stored as ``<!-- metadata: {json} -->``. Angle brackets
inside the JSON are written as unicode escapes so a value containing
``-->`` cannot end the HTML comment early; JSON decoding restores them.
"""

import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import ValidationError

from covguard.models import CommentMetadata

LOG = logging.getLogger("covguard.comments.metadata")

METADATA_RE = re.compile(r"<!-- metadata: (.*?) -->", re.DOTALL)

COMMENT_VERSION = "2.0"


def _escape(payload: str) -> str:
    return payload.replace("<", "\\u003c").replace(">", "\\u003e")


def embed_metadata(body: str, metadata: CommentMetadata) -> str:
    """Return body with any previous metadata block replaced by this one."""
    payload = _escape(metadata.model_dump_json(by_alias=True))
    block = f"<!-- metadata: {payload} -->"
    stripped = METADATA_RE.sub("", body).rstrip()
    if not stripped:
        return block
    return f"{stripped}\n\n{block}"


def extract_metadata(body: str) -> CommentMetadata | None:
    """Parse the metadata block from a comment body, or None."""
    match = METADATA_RE.search(body or "")
    if not match:
        return None
    try:
        return CommentMetadata.model_validate_json(match.group(1))
    except ValidationError as e:
        LOG.debug("Ignoring unparseable comment metadata: %s", e)
        return None


def next_metadata(
    previous: CommentMetadata | None,
    signature: str,
    pr_number: int,
    head_sha: str = "",
    base_sha: str = "",
    now: Callable[[], datetime] = lambda: datetime.now(UTC),
) -> CommentMetadata:
    """Metadata for the comment about to be posted.

    Carries the creation time forward and bumps the update count when the
    comment being replaced had metadata; otherwise starts at count 1.
    """
    current = now()
    created_at = current
    update_count = 1
    if previous is not None:
        created_at = previous.created_at
        update_count = previous.update_count + 1
    return CommentMetadata(
        signature=signature,
        comment_version=COMMENT_VERSION,
        created_at=created_at,
        last_updated_at=current,
        update_count=update_count,
        pr_number=pr_number,
        base_sha=base_sha,
        head_sha=head_sha,
    )
