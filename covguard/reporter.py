"""One reporting cycle: post the coverage comment, then the status checks.

The two flows are isolated: a failure while commenting is recorded and
the status checks still run, and vice versa. Builders here turn raw
percentages into the comparison and status request models.
"""

import logging
from datetime import UTC, datetime

from pydantic import BaseModel

from covguard.adapters.base import GitPlatformAdapter, GitPlatformError
from covguard.comments.antispam import has_significant_coverage_change
from covguard.comments.manager import PRCommentManager
from covguard.config import AppConfig
from covguard.deadline import Deadline, DeadlineExceeded
from covguard.grading import quality_grade_for, risk_level_for
from covguard.models import (
    ComparisonStatusData,
    CoverageComparison,
    CoverageData,
    CoverageStatusData,
    PRCommentResponse,
    QualityStatusData,
    StatusCheckRequest,
    StatusCheckResponse,
    TrendData,
)
from covguard.status.evaluator import StatusCheckEvaluator

LOG = logging.getLogger("covguard.reporter")

# Below this absolute change the trend is "stable".
STABLE_BAND = 0.1


def trend_direction(difference: float) -> str:
    if difference > STABLE_BAND:
        return "up"
    if difference < -STABLE_BAND:
        return "down"
    return "stable"


def trend_magnitude(difference: float) -> str:
    change = abs(difference)
    if change >= 5.0:
        return "significant"
    if change >= 2.0:
        return "moderate"
    if change >= 0.5:
        return "minor"
    return "negligible"


def build_comparison(
    coverage: float,
    base_coverage: float | None = None,
    commit_sha: str = "",
    trend: str | None = None,
) -> CoverageComparison:
    """Comparison from head and (optional) base percentages.

    Without a base the difference is zero and the base snapshot stays
    empty, so no misleading "0% -> N%" change is reported.
    """
    now = datetime.now(UTC)
    head = CoverageData(percentage=coverage, commit_sha=commit_sha, branch="current", timestamp=now)
    if base_coverage is None:
        return CoverageComparison(
            pr_coverage=head,
            trend_analysis=TrendData(direction=trend or "stable"),
        )

    difference = coverage - base_coverage
    return CoverageComparison(
        base_coverage=CoverageData(percentage=base_coverage, branch="base", timestamp=now),
        pr_coverage=head,
        difference=difference,
        trend_analysis=TrendData(
            direction=trend or trend_direction(difference),
            magnitude=trend_magnitude(difference),
            percentage_change=difference,
        ),
    )


def build_status_request(
    repo: str,
    commit_sha: str,
    comparison: CoverageComparison,
    pr_number: int = 0,
    skip_blocking: bool = False,
) -> StatusCheckRequest:
    """Status request for the head commit; quality derived from coverage."""
    owner, _, name = repo.partition("/")
    coverage = comparison.pr_coverage.percentage
    direction = comparison.trend_analysis.direction
    return StatusCheckRequest(
        owner=owner,
        repository=name,
        commit_sha=commit_sha,
        pr_number=pr_number,
        branch=comparison.pr_coverage.branch,
        base_branch=comparison.base_coverage.branch,
        skip_blocking=skip_blocking,
        coverage=CoverageStatusData(
            percentage=coverage,
            total_statements=comparison.pr_coverage.total_statements,
            covered_statements=comparison.pr_coverage.covered_statements,
            change=comparison.difference,
            trend=direction,
        ),
        comparison=ComparisonStatusData(
            base_percentage=comparison.base_coverage.percentage,
            current_percentage=coverage,
            difference=comparison.difference,
            is_significant=abs(comparison.difference) > 1.0,
            direction=direction,
        ),
        quality=QualityStatusData(
            grade=quality_grade_for(coverage),
            score=coverage,
            risk_level=risk_level_for(coverage),
        ),
    )


def render_summary(comparison: CoverageComparison, threshold: float) -> str:
    """Minimal markdown body for the coverage comment."""
    coverage = comparison.pr_coverage.percentage
    icon = "✅" if coverage >= threshold else "⚠️"
    lines = [
        "## 📊 Coverage Report",
        "",
        f"{icon} **Overall Coverage: {coverage:.2f}%** (threshold {threshold:.1f}%)",
    ]
    if comparison.base_coverage.timestamp is not None:
        lines.append(
            f"Change vs base: {comparison.difference:+.2f}% "
            f"({comparison.base_coverage.percentage:.2f}% → {coverage:.2f}%)"
        )
    lines.append(f"Trend: {comparison.trend_analysis.direction}")
    if has_significant_coverage_change(comparison):
        lines.append("")
        lines.append("> Significant coverage change in this PR.")
    if comparison.significant_files:
        lines.append("")
        lines.append("Files with significant changes:")
        lines.extend(f"- `{name}`" for name in comparison.significant_files)
    return "\n".join(lines) + "\n"


class ReportResult(BaseModel):
    """Outcome of one cycle; each flow reports either a response or an error."""

    comment: PRCommentResponse | None = None
    comment_error: str | None = None
    status: StatusCheckResponse | None = None
    status_error: str | None = None

    @property
    def blocked(self) -> bool:
        return self.status is not None and self.status.blocking_pr

    @property
    def ok(self) -> bool:
        return self.comment_error is None and self.status_error is None


class CoverageReporter:
    """Runs the comment flow and the status flow for a PR."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        config: AppConfig,
        manager: PRCommentManager | None = None,
        evaluator: StatusCheckEvaluator | None = None,
    ) -> None:
        self._config = config
        self.manager = manager or PRCommentManager(adapter, config.comment)
        self.evaluator = evaluator or StatusCheckEvaluator(adapter, config.status)

    def report(
        self,
        repo: str,
        pr_number: int,
        comparison: CoverageComparison,
        body: str | None = None,
        commit_sha: str = "",
        skip_blocking: bool = False,
        post_status: bool = True,
    ) -> ReportResult:
        result = ReportResult()
        if body is None:
            body = render_summary(comparison, self._config.status.coverage_threshold)

        comment_deadline = Deadline(self._config.github.timeout * 2)
        try:
            result.comment = self.manager.create_or_update_comment(
                repo, pr_number, body, comparison, deadline=comment_deadline
            )
        except (GitPlatformError, DeadlineExceeded) as e:
            result.comment_error = str(e)
            LOG.error("PR #%s: coverage comment failed: %s", pr_number, e)

        if not post_status or not self._config.status.enabled:
            LOG.debug("Status checks disabled")
            return result
        if not commit_sha:
            LOG.warning("No commit SHA given, status checks skipped")
            return result

        request = build_status_request(repo, commit_sha, comparison, pr_number, skip_blocking)
        try:
            result.status = self.evaluator.evaluate(request)
        except (GitPlatformError, DeadlineExceeded) as e:
            result.status_error = str(e)
            LOG.error("Status checks for %s failed: %s", commit_sha[:12], e)
        return result
