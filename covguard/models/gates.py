"""Quality gates: named pass/fail rules over a status snapshot.

Each gate kind is its own model with a threshold of the matching type;
``QualityGate`` is the union discriminated by ``type``, so a YAML entry
such as ``{type: quality_grade, threshold: 80}`` fails validation
instead of producing a gate that can never fail.
"""

from abc import ABC, abstractmethod
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from covguard.grading import compare_grades, compare_risk_levels
from covguard.models.status import StatusCheckRequest


class BaseGate(BaseModel, ABC):
    """Fields shared by every gate kind. Only the subclasses are instantiated."""

    name: str
    required: bool = False
    context: str
    description: str = ""

    @abstractmethod
    def passes(self, request: StatusCheckRequest) -> bool:
        """True when request satisfies the gate."""


class CoveragePercentageGate(BaseGate):
    """Head coverage must be at least the threshold."""

    type: Literal["coverage_percentage"] = "coverage_percentage"
    threshold: float

    def passes(self, request: StatusCheckRequest) -> bool:
        return request.coverage.percentage >= self.threshold


class CoverageChangeGate(BaseGate):
    """Coverage change must be at least the threshold (may be negative)."""

    type: Literal["coverage_change"] = "coverage_change"
    threshold: float

    def passes(self, request: StatusCheckRequest) -> bool:
        return request.coverage.change >= self.threshold


class QualityGradeGate(BaseGate):
    """Quality grade must be at least the threshold grade."""

    type: Literal["quality_grade"] = "quality_grade"
    threshold: str

    def passes(self, request: StatusCheckRequest) -> bool:
        # Unknown grades compare equal, so they pass.
        return compare_grades(request.quality.grade, self.threshold) >= 0


class RiskLevelGate(BaseGate):
    """Risk level must be at most the threshold level."""

    type: Literal["risk_level"] = "risk_level"
    threshold: str

    def passes(self, request: StatusCheckRequest) -> bool:
        # Unknown risk levels compare equal, so they pass.
        return compare_risk_levels(request.quality.risk_level, self.threshold) <= 0


class TrendDirectionGate(BaseGate):
    """Comparison direction must equal the threshold exactly."""

    type: Literal["trend_direction"] = "trend_direction"
    threshold: str

    def passes(self, request: StatusCheckRequest) -> bool:
        return request.comparison.direction == self.threshold


class FileCountGate(BaseGate):
    """Changed file count limit.

    The status snapshot carries no file count, so this gate always passes.
    """

    type: Literal["file_count"] = "file_count"
    threshold: int = 0

    def passes(self, request: StatusCheckRequest) -> bool:
        return True


QualityGate = Annotated[
    Union[
        CoveragePercentageGate,
        CoverageChangeGate,
        QualityGradeGate,
        RiskLevelGate,
        TrendDirectionGate,
        FileCountGate,
    ],
    Field(discriminator="type"),
]

_GATES_ADAPTER: TypeAdapter[list[QualityGate]] = TypeAdapter(list[QualityGate])


def parse_gates(raw: list[dict]) -> list[QualityGate]:
    """Validate a list of gate dicts (e.g. from YAML) into gate models."""
    return _GATES_ADAPTER.validate_python(raw)


def default_gates(coverage_threshold: float = 80.0, quality_threshold: str = "C") -> list[QualityGate]:
    """Required coverage threshold gate and optional quality grade gate."""
    return [
        CoveragePercentageGate(
            name="Coverage Threshold",
            threshold=coverage_threshold,
            required=True,
            context="coverage/threshold",
            description="Coverage must meet minimum threshold",
        ),
        QualityGradeGate(
            name="Quality Grade",
            threshold=quality_threshold,
            required=False,
            context="coverage/quality",
            description="Code quality must meet minimum grade",
        ),
    ]
