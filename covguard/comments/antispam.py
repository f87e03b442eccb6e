"""Decide whether to create, update or skip the coverage comment.

Rules are evaluated in order and the first match wins:

1. no coverage comment yet -> create
2. more coverage comments than allowed -> skip
3. last comment updated less than the minimum interval ago -> skip
   (an unparseable timestamp bypasses this rule)
4. significant change -> update
5. anything else -> update

Significance only changes the stated reason; past rules 1-3 the comment
is always updated.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

from covguard.config import CommentConfig
from covguard.models import Comment, CommentAction, CoverageComparison

LOG = logging.getLogger("covguard.comments.antispam")

SIGNIFICANT_DIFFERENCE = 1.0


def has_significant_coverage_change(comparison: CoverageComparison) -> bool:
    """True if the change is worth an unconditional update.

    Significant: |difference| strictly above 1.0, a "significant" trend
    magnitude, or any file change flagged significant.
    """
    if comparison.difference > SIGNIFICANT_DIFFERENCE or comparison.difference < -SIGNIFICANT_DIFFERENCE:
        return True
    if comparison.trend_analysis.magnitude == "significant":
        return True
    return any(fc.is_significant for fc in comparison.file_changes)


def parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp; None if it cannot be parsed.

    Timestamps without an offset are taken as UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _format_interval(interval: timedelta) -> str:
    minutes = int(interval.total_seconds() // 60)
    return f"{minutes}m"


class AntiSpamEngine:
    """Stateless decision engine; one instance may serve any number of PRs."""

    def __init__(self, config: CommentConfig, now: Callable[[], datetime] = _utcnow) -> None:
        self._config = config
        self._now = now

    def decide(self, existing_comments: Sequence[Comment], comparison: CoverageComparison) -> CommentAction:
        max_comments = self._config.max_comments_per_pr
        min_interval = timedelta(minutes=self._config.min_update_interval_minutes)
        LOG.info(
            "Determining comment action | existing=%d | max=%d | min_interval=%s",
            len(existing_comments),
            max_comments,
            _format_interval(min_interval),
        )

        if not existing_comments:
            LOG.info("No existing coverage comment, will create one")
            return CommentAction(action="create", should_post=True, reason="No existing coverage comment found")

        if len(existing_comments) > max_comments:
            LOG.warning(
                "Skipping comment: %d coverage comments exceed the maximum of %d",
                len(existing_comments),
                max_comments,
            )
            return CommentAction(
                action="skip",
                should_post=False,
                reason=f"Maximum comments per PR ({max_comments}) exceeded",
            )

        last = existing_comments[-1]
        updated_at = parse_timestamp(last.updated_at)
        if updated_at is None:
            LOG.warning(
                "Cannot parse update time %r of comment %s, skipping interval check",
                last.updated_at,
                last.id,
            )
        else:
            elapsed = self._now() - updated_at
            LOG.debug("Comment %s last updated %s ago (min %s)", last.id, elapsed, min_interval)
            if elapsed < min_interval:
                LOG.info("Skipping comment update: last update %s ago, minimum is %s", elapsed, min_interval)
                return CommentAction(
                    action="skip",
                    should_post=False,
                    reason=f"Minimum update interval ({_format_interval(min_interval)}) not reached",
                )

        if has_significant_coverage_change(comparison):
            LOG.info("Significant coverage change detected, will update comment")
            return CommentAction(action="update", should_post=True, reason="Significant coverage change detected")

        LOG.info("No significant change, updating comment with fresh data")
        return CommentAction(action="update", should_post=True, reason="Coverage data updated")
