"""Quality grades and risk levels.

Ordinals used by quality gates, plus the mapping from a coverage
percentage to a grade and a risk level used when no external quality
analysis is available.

Unknown grade or risk strings compare as equal to anything, so gates
built on these comparisons pass when either side is unknown.
"""

GRADE_VALUES = {
    "A+": 6,
    "A": 5,
    "B+": 4,
    "B": 3,
    "C": 2,
    "D": 1,
    "F": 0,
}

RISK_VALUES = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}


def compare_grades(grade: str, other: str) -> int:
    """Return the ordinal distance grade - other (0 if either is unknown)."""
    if grade not in GRADE_VALUES or other not in GRADE_VALUES:
        return 0
    return GRADE_VALUES[grade] - GRADE_VALUES[other]


def compare_risk_levels(risk: str, other: str) -> int:
    """Return the ordinal distance risk - other (0 if either is unknown)."""
    if risk not in RISK_VALUES or other not in RISK_VALUES:
        return 0
    return RISK_VALUES[risk] - RISK_VALUES[other]


def quality_grade_for(percentage: float) -> str:
    """Grade derived from a coverage percentage."""
    if percentage >= 95:
        return "A+"
    if percentage >= 90:
        return "A"
    if percentage >= 85:
        return "B+"
    if percentage >= 80:
        return "B"
    if percentage >= 70:
        return "C"
    if percentage >= 60:
        return "D"
    return "F"


def risk_level_for(percentage: float) -> str:
    """Risk level derived from a coverage percentage."""
    if percentage >= 80:
        return "low"
    if percentage >= 60:
        return "medium"
    if percentage >= 40:
        return "high"
    return "critical"
