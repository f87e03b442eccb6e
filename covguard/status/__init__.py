"""Commit status checks and quality gates."""

from covguard.status.evaluator import OVERRIDE_LABEL, StatusCheckEvaluator

__all__ = ["OVERRIDE_LABEL", "StatusCheckEvaluator"]
