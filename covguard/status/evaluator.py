"""Commit status checks and the merge-blocking decision.

Builds the set of statuses for a commit (main coverage, additional
contexts, quality gates, caller-supplied contexts), pushes each one with
retries and aggregates the results. Evaluation never raises because of a
failed push: failures are recorded per context and counted.
"""

import logging
import math
from datetime import UTC, datetime

from covguard.adapters.base import DecodeError, GitPlatformAdapter, GitPlatformError
from covguard.config import StatusCheckConfig
from covguard.deadline import Deadline, DeadlineExceeded
from covguard.models import (
    CommitStatus,
    QualityGate,
    StatusCheckRequest,
    StatusCheckResponse,
    StatusInfo,
    StatusResult,
)
from covguard.models.status import STATE_ERROR, STATE_FAILURE, STATE_PENDING, STATE_SUCCESS
from covguard.retry import RetryPolicy

LOG = logging.getLogger("covguard.status.evaluator")

OVERRIDE_LABEL = "coverage-override"
# GitHub rejects longer status descriptions.
MAX_DESCRIPTION_LENGTH = 140


def _truncate(text: str, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


class StatusCheckEvaluator:
    """Evaluates and pushes status checks for one commit per call."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        config: StatusCheckConfig,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._adapter = adapter
        self._config = config
        self._retry = retry or RetryPolicy.from_config(
            config.retry,
            retry_on=(GitPlatformError,),
            never_retry=(DecodeError,),
        )

    def evaluate(self, request: StatusCheckRequest, deadline: Deadline | None = None) -> StatusCheckResponse:
        """Build, push and aggregate all status checks for request.commit_sha."""
        if deadline is None:
            deadline = Deadline(self._config.timeout)
        started = datetime.now(UTC)

        statuses = self.build_status_checks(request, deadline)
        response = StatusCheckResponse(created_at=started, updated_at=started)

        for context, info in statuses.items():
            result = self._push_status(request, context, info, deadline)
            response.statuses[context] = result
            response.total_checks += 1

            if not result.success:
                response.error_checks += 1
                if result.required:
                    response.required_failed.append(context)
                continue
            if result.state == STATE_SUCCESS:
                response.passed_checks += 1
            elif result.state in (STATE_FAILURE, STATE_ERROR):
                if result.state == STATE_FAILURE:
                    response.failed_checks += 1
                else:
                    response.error_checks += 1
                if result.required:
                    response.required_failed.append(context)

        response.all_passing = response.failed_checks == 0 and response.error_checks == 0
        response.blocking_pr = self.should_block_pr(response, request)
        response.status_url = f"https://github.com/{request.owner}/{request.repository}/commit/{request.commit_sha}"
        response.checks_url = f"{response.status_url}/checks"
        response.updated_at = datetime.now(UTC)

        LOG.info(
            "Status checks for %s: %d total, %d passed, %d failed, %d errors, blocking=%s",
            request.commit_sha[:12],
            response.total_checks,
            response.passed_checks,
            response.failed_checks,
            response.error_checks,
            response.blocking_pr,
        )
        if response.required_failed:
            LOG.warning("Required checks failed: %s", ", ".join(response.required_failed))
        return response

    def build_status_checks(
        self,
        request: StatusCheckRequest,
        deadline: Deadline | None = None,
    ) -> dict[str, StatusInfo]:
        """All statuses to push, keyed by full context, in push order.

        Later entries replace earlier ones with the same key, so quality
        gates and custom contexts can override built-in statuses.
        """
        statuses: dict[str, StatusInfo] = {}
        statuses[self.build_context(self._config.main_context)] = self.build_main_coverage_status(request, deadline)

        for additional in self._config.additional_contexts:
            statuses[self.build_context(additional)] = self.build_additional_status(request, additional)

        if self._config.enable_quality_gates:
            for gate in self._config.gates():
                statuses[self.build_context(gate.context)] = self.build_quality_gate_status(request, gate)

        for context, info in request.custom_contexts.items():
            statuses[self.build_context(context)] = info

        return statuses

    def build_context(self, context: str) -> str:
        if self._config.context_prefix:
            return f"{self._config.context_prefix}/{context}"
        return context

    def _label_override_threshold(self, request: StatusCheckRequest, deadline: Deadline | None) -> float | None:
        """Threshold forced by the override label, or None.

        The label drops the threshold to zero; there are no partial
        overrides. A failed PR fetch keeps the configured threshold.
        """
        if not self._config.allow_label_override or request.pr_number <= 0:
            return None
        try:
            pr = self._adapter.get_pr(request.full_name, request.pr_number, deadline=deadline)
        except (GitPlatformError, DeadlineExceeded) as e:
            LOG.debug("PR #%s: cannot read labels for override: %s", request.pr_number, e)
            return None
        if OVERRIDE_LABEL in pr.labels:
            LOG.info("PR #%s: %r label present, coverage threshold ignored", request.pr_number, OVERRIDE_LABEL)
            return 0.0
        return None

    def build_main_coverage_status(
        self,
        request: StatusCheckRequest,
        deadline: Deadline | None = None,
    ) -> StatusInfo:
        coverage = request.coverage.percentage
        threshold = self._config.coverage_threshold

        override = self._label_override_threshold(request, deadline)
        if override is not None:
            threshold = override
        indicator = " [override]" if threshold != self._config.coverage_threshold else ""

        if coverage >= threshold:
            state = STATE_SUCCESS
            description = f"Coverage: {coverage:.1f}% ✅ (≥ {threshold:.1f}%{indicator})"
        else:
            # Soft-fail mode reports success but keeps the warning.
            state = STATE_FAILURE if self._config.block_on_failure else STATE_SUCCESS
            description = f"Coverage: {coverage:.1f}% ⚠️ (< {threshold:.1f}% threshold{indicator})"

        if request.coverage.change != 0:
            description = f"{description}, {request.coverage.change:+.1f}%"

        target_url = ""
        if self._config.include_target_urls:
            target_url = f"https://{request.owner}.github.io/{request.repository}/coverage/"
            if request.pr_number > 0:
                target_url = f"{target_url}pr/{request.pr_number}/"

        return StatusInfo(
            context=self._config.main_context,
            state=state,
            description=description,
            target_url=target_url,
            required=True,
        )

    def build_additional_status(self, request: StatusCheckRequest, context: str) -> StatusInfo:
        """Dispatch on the context name."""
        if "trend" in context:
            return self.build_trend_status(request)
        if "quality" in context:
            return self.build_quality_status(request)
        if "comparison" in context:
            return self.build_comparison_status(request)
        return self.build_generic_status(request, context)

    def build_trend_status(self, request: StatusCheckRequest) -> StatusInfo:
        change = request.coverage.change
        if change > 1.0:
            state = STATE_SUCCESS
            description = f"📈 Coverage improved by {change:.1f}%"
        elif change < -1.0:
            state = STATE_FAILURE
            description = f"📉 Coverage decreased by {math.fabs(change):.1f}%"
        else:
            state = STATE_SUCCESS
            description = f"📊 Coverage stable ({change:+.1f}%)"

        if request.coverage.trend:
            description = f"{description} ({request.coverage.trend} trend)"

        return StatusInfo(context="coverage/trend", state=state, description=description)

    def build_quality_status(self, request: StatusCheckRequest) -> StatusInfo:
        grade = request.quality.grade
        score = request.quality.score
        risk = request.quality.risk_level

        if grade in ("A+", "A", "B+", "B"):
            state = STATE_SUCCESS
            description = f"🏆 Quality Grade: {grade} ({score:.0f}/100)"
        elif grade == "C":
            state = STATE_SUCCESS
            description = f"⚠️ Quality Grade: {grade} ({score:.0f}/100)"
        elif grade in ("D", "F"):
            state = STATE_FAILURE
            description = f"🚨 Quality Grade: {grade} ({score:.0f}/100)"
        else:
            state = STATE_PENDING
            description = f"📊 Quality Score: {score:.0f}/100"

        if risk and risk != "low":
            description = f"{description}, {risk} risk"

        return StatusInfo(context="coverage/quality", state=state, description=description)

    def build_comparison_status(self, request: StatusCheckRequest) -> StatusInfo:
        base = request.comparison.base_percentage
        current = request.comparison.current_percentage
        diff = request.comparison.difference

        if diff > 0.1:
            state = STATE_SUCCESS
            description = f"📈 +{diff:.1f}% vs base ({base:.1f}% → {current:.1f}%)"
        elif diff < -0.1:
            state = STATE_FAILURE
            description = f"📉 {diff:.1f}% vs base ({base:.1f}% → {current:.1f}%)"
        else:
            state = STATE_SUCCESS
            description = f"📊 ±0.0% vs base ({current:.1f}%)"

        return StatusInfo(context="coverage/comparison", state=state, description=description)

    def build_generic_status(self, request: StatusCheckRequest, context: str) -> StatusInfo:
        return StatusInfo(
            context=context,
            state=STATE_SUCCESS,
            description=f"Coverage: {request.coverage.percentage:.1f}%",
        )

    def build_quality_gate_status(self, request: StatusCheckRequest, gate: QualityGate) -> StatusInfo:
        """Failing optional gates report success with the failure text."""
        if gate.passes(request):
            state = STATE_SUCCESS
            description = f"✅ {gate.name}: Passed"
        else:
            state = STATE_FAILURE if gate.required else STATE_SUCCESS
            description = f"❌ {gate.name}: {gate.description}"
            LOG.info("Quality gate %r failed (required=%s)", gate.name, gate.required)

        return StatusInfo(
            context=gate.context,
            state=state,
            description=description,
            required=gate.required,
        )

    def _push_status(
        self,
        request: StatusCheckRequest,
        context: str,
        info: StatusInfo,
        deadline: Deadline | None,
    ) -> StatusResult:
        status = CommitStatus(
            state=info.state,
            target_url=info.target_url,
            description=_truncate(info.description),
            context=context,
        )
        error: str | None = None
        try:
            self._retry.call(
                self._adapter.create_status,
                request.full_name,
                request.commit_sha,
                status,
                deadline=deadline,
            )
        except (GitPlatformError, DeadlineExceeded) as e:
            error = str(e)
            LOG.warning("Failed to create status %s on %s: %s", context, request.commit_sha[:12], e)

        return StatusResult(
            context=context,
            state=info.state,
            description=info.description,
            target_url=info.target_url,
            success=error is None,
            error=error,
            required=info.required,
            blocking=info.required and self._config.enable_blocking,
        )

    def should_block_pr(self, response: StatusCheckResponse, request: StatusCheckRequest) -> bool:
        if not self._config.enable_blocking or request.skip_blocking:
            return False
        if response.required_failed:
            return True
        if self._config.require_all_passing and (response.failed_checks > 0 or response.error_checks > 0):
            return True
        return False
