"""
Grading Engine Module.

Core grading logic: totals, grade classification, pass/fail,
class statistics, and batch mark submission.
"""

from gradely.grading.calculator import (
    PASSING_THRESHOLD,
    STANDARD_ASSESSMENTS,
    STANDARD_MAXIMA,
    TOTAL_CAP,
    aggregate,
    assessment_percentage,
    compute_total,
    grade_outcome,
    has_passed,
    student_totals,
)
from gradely.grading.engine import GradingEngine
from gradely.grading.scale import (
    DEFAULT_GRADING_SCALE,
    GradingScaleError,
    band_for,
    classify,
    resolve_scale,
)
from gradely.grading.validator import (
    InvalidScoreError,
    ScoreValidator,
    SubmissionError,
    UnknownAssessmentTypeError,
)

__all__ = [
    "DEFAULT_GRADING_SCALE",
    "PASSING_THRESHOLD",
    "STANDARD_ASSESSMENTS",
    "STANDARD_MAXIMA",
    "TOTAL_CAP",
    "GradingEngine",
    "GradingScaleError",
    "InvalidScoreError",
    "ScoreValidator",
    "SubmissionError",
    "UnknownAssessmentTypeError",
    "aggregate",
    "assessment_percentage",
    "band_for",
    "classify",
    "compute_total",
    "grade_outcome",
    "has_passed",
    "resolve_scale",
    "student_totals",
]
