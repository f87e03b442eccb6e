"""Find coverage comments among all comments on a PR.

A comment is ours when its body contains the configured signature or any
marker used by earlier comment formats, so after a signature change the
old comment is updated instead of a second one being posted.
"""

import logging
from typing import List

from covguard.adapters.base import GitPlatformAdapter, GitPlatformError, RequestBuildError
from covguard.deadline import Deadline
from covguard.models import Comment
from covguard.retry import RetryPolicy

LOG = logging.getLogger("covguard.comments.discovery")

# Read-only markers of earlier comment formats, checked after the signature.
LEGACY_MARKERS: tuple[str, ...] = (
    "<!-- covguard -->",
    "<!-- coverage-comment -->",
    "[//]: # (covguard-v1)",
    "[//]: # (covguard)",
    "<!-- covguard-v1 -->",
    "## 📊 Coverage Report",
    "Generated by covguard",
    "📊 Coverage Report",
    "Overall Coverage:",
    "Coverage Metrics",
)

DISCOVERY_ATTEMPTS = 3
DISCOVERY_BACKOFF_STEP = 1.0


def signature_marker(signature: str) -> str:
    """HTML comment written at the top of every new coverage comment."""
    return f"<!-- {signature} -->"


def _preview(body: str, limit: int = 100) -> str:
    return body if len(body) <= limit else body[:limit] + "..."


class CommentDiscovery:
    """Lists PR comments and keeps the ones recognized as coverage comments."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        signature: str,
        retry: RetryPolicy | None = None,
        attempts: int = DISCOVERY_ATTEMPTS,
    ) -> None:
        self._adapter = adapter
        self.signature = signature
        self._retry = retry or RetryPolicy.linear_attempts(
            attempts,
            step=DISCOVERY_BACKOFF_STEP,
            no_delay_on=(RequestBuildError,),
        )

    @property
    def markers(self) -> tuple[str, ...]:
        """Signature first, then legacy markers (order matters for logging only)."""
        if self.signature:
            return (self.signature, *LEGACY_MARKERS)
        return LEGACY_MARKERS

    def is_coverage_comment(self, body: str) -> bool:
        """True if body contains any known marker (case-sensitive)."""
        if not body:
            return False
        for index, marker in enumerate(self.markers):
            if marker in body:
                LOG.debug("Comment matched marker %d (%r)", index, marker)
                return True
        return False

    def find_coverage_comments(
        self,
        repo: str,
        pr_number: int,
        deadline: Deadline | None = None,
    ) -> List[Comment]:
        """Return coverage comments on the PR in API order.

        Listing is retried (linear backoff); when every attempt fails the
        last error is raised with a note naming the PR.
        """
        LOG.debug("PR #%s: searching for coverage comments in %s", pr_number, repo)
        try:
            comments = self._retry.call(self._adapter.list_pr_comments, repo, pr_number, deadline=deadline)
        except GitPlatformError as e:
            e.add_note(f"while listing comments of {repo}#{pr_number} ({self._retry.max_attempts} attempts)")
            LOG.error("PR #%s: all attempts to fetch comments failed: %s", pr_number, e)
            raise

        found: List[Comment] = []
        for index, comment in enumerate(comments):
            is_coverage = self.is_coverage_comment(comment.body)
            LOG.debug(
                "PR #%s: comment %s (idx=%d, updated=%s) coverage=%s: %s",
                pr_number,
                comment.id,
                index,
                comment.updated_at,
                is_coverage,
                _preview(comment.body),
            )
            if is_coverage:
                found.append(comment)

        LOG.info("PR #%s: found %d coverage comment(s) of %d", pr_number, len(found), len(comments))
        return found
