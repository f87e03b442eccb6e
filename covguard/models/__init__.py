"""Data models for comments, pull requests, coverage and status checks (Pydantic)."""

from covguard.models.comment import Comment, CommentAction, PRCommentResponse
from covguard.models.coverage import CoverageComparison, CoverageData, FileChange, TrendData
from covguard.models.gates import (
    CoverageChangeGate,
    CoveragePercentageGate,
    FileCountGate,
    QualityGate,
    QualityGradeGate,
    RiskLevelGate,
    TrendDirectionGate,
)
from covguard.models.metadata import CommentMetadata
from covguard.models.pr import PullRequest
from covguard.models.status import (
    CommitStatus,
    ComparisonStatusData,
    CoverageStatusData,
    QualityStatusData,
    StatusCheckRequest,
    StatusCheckResponse,
    StatusInfo,
    StatusResult,
)

__all__ = [
    "Comment",
    "CommentAction",
    "CommentMetadata",
    "CommitStatus",
    "ComparisonStatusData",
    "CoverageChangeGate",
    "CoverageComparison",
    "CoverageData",
    "CoveragePercentageGate",
    "CoverageStatusData",
    "FileChange",
    "FileCountGate",
    "PRCommentResponse",
    "PullRequest",
    "QualityGate",
    "QualityGradeGate",
    "QualityStatusData",
    "RiskLevelGate",
    "StatusCheckRequest",
    "StatusCheckResponse",
    "StatusInfo",
    "StatusResult",
    "TrendData",
    "TrendDirectionGate",
]
