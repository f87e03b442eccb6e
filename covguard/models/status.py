"""Commit status check request/response models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

StatusState = Literal["success", "failure", "error", "pending"]

STATE_SUCCESS: StatusState = "success"
STATE_FAILURE: StatusState = "failure"
STATE_ERROR: StatusState = "error"
STATE_PENDING: StatusState = "pending"


class CoverageStatusData(BaseModel):
    """Head coverage as seen by status checks."""

    percentage: float = 0.0
    total_statements: int = 0
    covered_statements: int = 0
    change: float = 0.0
    trend: str = ""


class ComparisonStatusData(BaseModel):
    """Base vs head comparison as seen by status checks."""

    base_percentage: float = 0.0
    current_percentage: float = 0.0
    difference: float = 0.0
    is_significant: bool = False
    direction: str = ""


class QualityStatusData(BaseModel):
    """Quality assessment as seen by status checks."""

    grade: str = ""
    score: float = 0.0
    risk_level: str = ""
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class StatusInfo(BaseModel):
    """A status to be pushed for one context."""

    context: str
    state: StatusState
    description: str = ""
    target_url: str = ""
    required: bool = False


class CommitStatus(BaseModel):
    """Request body of POST /repos/{owner}/{repo}/statuses/{sha}."""

    state: StatusState
    target_url: str = ""
    description: str = ""
    context: str


class StatusCheckRequest(BaseModel):
    """One evaluation unit: a commit, its coverage snapshot and PR context."""

    owner: str
    repository: str
    commit_sha: str

    coverage: CoverageStatusData = Field(default_factory=CoverageStatusData)
    comparison: ComparisonStatusData = Field(default_factory=ComparisonStatusData)
    quality: QualityStatusData = Field(default_factory=QualityStatusData)

    pr_number: int = 0
    branch: str = ""
    base_branch: str = ""

    force_update: bool = False
    skip_blocking: bool = False
    custom_contexts: dict[str, StatusInfo] = Field(default_factory=dict)

    @property
    def full_name(self) -> str:
        """Repository as owner/repo."""
        return f"{self.owner}/{self.repository}"


class StatusResult(BaseModel):
    """Outcome of pushing a single status."""

    context: str
    state: StatusState
    description: str = ""
    target_url: str = ""
    success: bool
    error: str | None = None
    required: bool = False
    blocking: bool = False


class StatusCheckResponse(BaseModel):
    """Aggregated outcome of all status checks for one commit."""

    statuses: dict[str, StatusResult] = Field(default_factory=dict)

    all_passing: bool = False
    blocking_pr: bool = False
    required_failed: list[str] = Field(default_factory=list)

    status_url: str = ""
    checks_url: str = ""

    created_at: datetime
    updated_at: datetime
    total_checks: int = 0
    passed_checks: int = 0
    failed_checks: int = 0
    error_checks: int = 0
