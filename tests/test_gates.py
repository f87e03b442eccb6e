"""Tests for covguard.models.gates (quality gate union)."""

import pytest
from pydantic import ValidationError

from covguard.models import (
    CoverageChangeGate,
    CoveragePercentageGate,
    FileCountGate,
    QualityGradeGate,
    RiskLevelGate,
    StatusCheckRequest,
    TrendDirectionGate,
)
from covguard.models.gates import BaseGate, default_gates, parse_gates
from covguard.models.status import ComparisonStatusData, CoverageStatusData, QualityStatusData


def _request(percentage: float = 80.0, change: float = 0.0, grade: str = "B", risk: str = "low", direction: str = "up"):
    return StatusCheckRequest(
        owner="o",
        repository="r",
        commit_sha="abc",
        coverage=CoverageStatusData(percentage=percentage, change=change),
        comparison=ComparisonStatusData(direction=direction),
        quality=QualityStatusData(grade=grade, risk_level=risk),
    )


class TestParseGates:
    """Gates are discriminated by type with typed thresholds."""

    def test_each_kind_parsed(self) -> None:
        gates = parse_gates(
            [
                {"type": "coverage_percentage", "name": "min", "context": "c1", "threshold": 75},
                {"type": "coverage_change", "name": "delta", "context": "c2", "threshold": -0.5},
                {"type": "quality_grade", "name": "grade", "context": "c3", "threshold": "B"},
                {"type": "risk_level", "name": "risk", "context": "c4", "threshold": "medium"},
                {"type": "trend_direction", "name": "trend", "context": "c5", "threshold": "up"},
                {"type": "file_count", "name": "files", "context": "c6", "threshold": 50},
            ]
        )
        assert [type(g) for g in gates] == [
            CoveragePercentageGate,
            CoverageChangeGate,
            QualityGradeGate,
            RiskLevelGate,
            TrendDirectionGate,
            FileCountGate,
        ]
        assert gates[0].threshold == 75.0

    def test_wrong_threshold_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_gates([{"type": "coverage_percentage", "name": "x", "context": "c", "threshold": "high"}])

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_gates([{"type": "mutation_score", "name": "x", "context": "c", "threshold": 1}])


class TestPasses:
    def test_coverage_percentage(self) -> None:
        gate = CoveragePercentageGate(name="g", context="c", threshold=80.0)
        assert gate.passes(_request(percentage=80.0))
        assert not gate.passes(_request(percentage=79.9))

    def test_coverage_change_may_be_negative(self) -> None:
        gate = CoverageChangeGate(name="g", context="c", threshold=-1.0)
        assert gate.passes(_request(change=-0.5))
        assert not gate.passes(_request(change=-2.0))

    def test_quality_grade(self) -> None:
        gate = QualityGradeGate(name="g", context="c", threshold="B")
        assert gate.passes(_request(grade="A"))
        assert not gate.passes(_request(grade="C"))

    def test_unknown_grade_passes(self) -> None:
        gate = QualityGradeGate(name="g", context="c", threshold="B")
        assert gate.passes(_request(grade="Z"))

    def test_risk_level(self) -> None:
        gate = RiskLevelGate(name="g", context="c", threshold="medium")
        assert gate.passes(_request(risk="low"))
        assert not gate.passes(_request(risk="high"))
        assert gate.passes(_request(risk="unrated"))

    def test_trend_direction_exact(self) -> None:
        gate = TrendDirectionGate(name="g", context="c", threshold="up")
        assert gate.passes(_request(direction="up"))
        assert not gate.passes(_request(direction="stable"))

    def test_file_count_always_passes(self) -> None:
        assert FileCountGate(name="g", context="c", threshold=0).passes(_request())


def test_default_gates() -> None:
    threshold, grade = default_gates(90.0, "B")
    assert threshold.required and threshold.threshold == 90.0
    assert threshold.context == "coverage/threshold"
    assert not grade.required and grade.threshold == "B"
    assert grade.context == "coverage/quality"


class TestBaseGate:
    def test_cannot_be_instantiated(self) -> None:
        """Only concrete gate kinds can be built."""
        with pytest.raises(TypeError):
            BaseGate(name="bare", context="coverage/bare")

    def test_subclass_without_passes_is_abstract(self) -> None:
        class NoCheckGate(BaseGate):
            pass

        with pytest.raises(TypeError):
            NoCheckGate(name="incomplete", context="coverage/incomplete")
