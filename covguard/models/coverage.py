"""Coverage snapshot and base/head comparison models."""

from datetime import datetime

from pydantic import BaseModel, Field


class CoverageData(BaseModel):
    """Coverage of one commit."""

    percentage: float = 0.0
    total_statements: int = 0
    covered_statements: int = 0
    commit_sha: str = ""
    branch: str = ""
    timestamp: datetime | None = None


class TrendData(BaseModel):
    """Trend analysis of a coverage change."""

    direction: str = "stable"  # up, down, stable
    magnitude: str = "minor"  # significant, moderate, minor, negligible
    percentage_change: float = 0.0
    momentum: str = "steady"  # accelerating, steady, decelerating


class FileChange(BaseModel):
    """Coverage change of a single file."""

    filename: str
    base_coverage: float = 0.0
    pr_coverage: float = 0.0
    difference: float = 0.0
    lines_added: int = 0
    lines_removed: int = 0
    is_significant: bool = False


class CoverageComparison(BaseModel):
    """Coverage delta between the base branch and the PR head.

    Built once per reporting cycle and treated as read-only input.
    """

    base_coverage: CoverageData = Field(default_factory=CoverageData)
    pr_coverage: CoverageData = Field(default_factory=CoverageData)
    difference: float = 0.0
    trend_analysis: TrendData = Field(default_factory=TrendData)
    file_changes: list[FileChange] = Field(default_factory=list)
    significant_files: list[str] = Field(default_factory=list)
