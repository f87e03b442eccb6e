"""Coverage comment lifecycle on a PR: create or update, delete, stats.

Hard failures (PR fetch, comment discovery, posting) propagate to the
caller; nothing can be decided without knowing the prior state.
"""

import logging
from typing import Any

from covguard.adapters.base import GitPlatformAdapter, GitPlatformError
from covguard.comments.antispam import AntiSpamEngine
from covguard.comments.discovery import CommentDiscovery, signature_marker
from covguard.comments.metadata import embed_metadata, extract_metadata, next_metadata
from covguard.config import CommentConfig
from covguard.deadline import Deadline
from covguard.models import CoverageComparison, PRCommentResponse

LOG = logging.getLogger("covguard.comments.manager")


def with_signature(body: str, signature: str) -> str:
    """Prefix body with the signature marker unless it already carries it."""
    marker = signature_marker(signature)
    if marker in body:
        return body
    return f"{marker}\n{body}"


class PRCommentManager:
    """Keeps a single coverage comment per PR up to date."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        config: CommentConfig,
        discovery: CommentDiscovery | None = None,
        engine: AntiSpamEngine | None = None,
    ) -> None:
        self._adapter = adapter
        self._config = config
        self.discovery = discovery or CommentDiscovery(
            adapter, config.signature, attempts=config.discovery_attempts
        )
        self.engine = engine or AntiSpamEngine(config)

    def create_or_update_comment(
        self,
        repo: str,
        pr_number: int,
        body: str,
        comparison: CoverageComparison,
        deadline: Deadline | None = None,
    ) -> PRCommentResponse:
        """Post the coverage comment if the anti-spam rules allow it.

        Updates the first discovered coverage comment, or creates one when
        none exists. Extra coverage comments are left untouched.
        """
        pr = self._adapter.get_pr(repo, pr_number, deadline=deadline)
        existing = self.discovery.find_coverage_comments(repo, pr_number, deadline=deadline)
        decision = self.engine.decide(existing, comparison)

        if not decision.should_post:
            LOG.info("PR #%s: comment skipped: %s", pr_number, decision.reason)
            return PRCommentResponse(action="skipped", reason=decision.reason, coverage_data=comparison)

        previous = extract_metadata(existing[0].body) if existing else None
        metadata = next_metadata(
            previous,
            signature=self._config.signature,
            pr_number=pr_number,
            head_sha=pr.head_sha,
            base_sha=pr.base_sha,
        )
        full_body = embed_metadata(with_signature(body, self._config.signature), metadata)

        if existing:
            target = existing[0]
            comment = self._adapter.update_comment(repo, target.id, full_body, deadline=deadline)
            action = "updated"
        else:
            comment = self._adapter.create_comment(repo, pr_number, full_body, deadline=deadline)
            action = "created"

        LOG.info(
            "PR #%s: coverage comment %s %s (update #%d): %s",
            pr_number,
            comment.id,
            action,
            metadata.update_count,
            decision.reason,
        )
        return PRCommentResponse(
            comment_id=comment.id,
            action=action,
            reason=decision.reason,
            metadata=metadata,
            coverage_data=comparison,
        )

    def delete_coverage_comments(self, repo: str, pr_number: int, deadline: Deadline | None = None) -> int:
        """Delete every coverage comment on the PR; returns how many were deleted.

        A comment that cannot be deleted is logged and skipped.
        """
        existing = self.discovery.find_coverage_comments(repo, pr_number, deadline=deadline)
        deleted = 0
        for comment in existing:
            try:
                self._adapter.delete_comment(repo, comment.id, deadline=deadline)
            except GitPlatformError as e:
                LOG.warning("PR #%s: failed to delete comment %s: %s", pr_number, comment.id, e)
                continue
            deleted += 1
        LOG.info("PR #%s: deleted %d of %d coverage comment(s)", pr_number, deleted, len(existing))
        return deleted

    def comment_stats(self, repo: str, pr_number: int, deadline: Deadline | None = None) -> dict[str, Any]:
        """Summary of the coverage comments currently on the PR."""
        existing = self.discovery.find_coverage_comments(repo, pr_number, deadline=deadline)
        stats: dict[str, Any] = {
            "total_comments": len(existing),
            "has_comments": bool(existing),
            "last_update_time": "",
            "comment_signature": self._config.signature,
        }
        if existing:
            last = existing[-1]
            stats["last_update_time"] = last.updated_at
            stats["last_comment_id"] = last.id
            metadata = extract_metadata(last.body)
            if metadata is not None:
                stats["update_count"] = metadata.update_count
                stats["created_at"] = metadata.created_at
        return stats
