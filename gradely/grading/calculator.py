"""
Total, pass/fail and class statistics calculations.

All functions are pure: they read their arguments and return a value.
Input is expected to have been checked by ``ScoreValidator`` first.
"""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Iterable, Mapping, Sequence

from gradely.grading.scale import classify, resolve_scale
from gradely.grading.validator import UnknownAssessmentTypeError
from gradely.models import (
    AssessmentDefinition,
    ClassStatistics,
    CourseOffering,
    GradeBand,
    GradeOutcome,
    GradingScale,
    StoredMark,
    as_decimal,
)

TOTAL_CAP = Decimal("100")
PASSING_THRESHOLD = Decimal("60")

# Five-category breakdown used when no offering-specific assessments are given
STANDARD_ASSESSMENTS: tuple[AssessmentDefinition, ...] = (
    AssessmentDefinition(id="assignment", name="Assignment", weight=10, max_score=10),
    AssessmentDefinition(id="quiz", name="Quiz", weight=15, max_score=15),
    AssessmentDefinition(id="project", name="Project", weight=25, max_score=25),
    AssessmentDefinition(id="midsem", name="Midsem", weight=20, max_score=20),
    AssessmentDefinition(id="finalExam", name="Final Exam", weight=30, max_score=30),
)

STANDARD_MAXIMA: dict[str, Decimal] = {a.id: a.max_score for a in STANDARD_ASSESSMENTS}

_CENTS = Decimal("0.01")


def _round2(value: Decimal) -> Decimal:
    with localcontext() as ctx:
        # Room for every integer digit plus two places
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def compute_total(
    scores: Mapping[str, Any],
    maxima: Mapping[str, Any] | None = None,
    cap: Decimal = TOTAL_CAP,
) -> Decimal:
    """
    Sum per-assessment scores into a bounded total.

    Args:
        scores: Assessment kind -> score. Missing or None scores count as 0.
        maxima: Known kinds and their maxima. When given, unknown kinds are rejected.
        cap: Upper bound for the total.

    Returns:
        The sum, capped at ``cap``.

    Raises:
        UnknownAssessmentTypeError: If ``maxima`` is given and a kind is not in it.
    """
    if maxima is not None:
        for kind in scores:
            if kind not in maxima:
                raise UnknownAssessmentTypeError(kind, field=kind)

    total = sum((as_decimal(v) for v in scores.values() if v is not None), Decimal(0))
    return min(total, as_decimal(cap))


def has_passed(total: Any, threshold: Any = PASSING_THRESHOLD) -> bool:
    """Pass/fail from the numeric threshold alone, never from the letter grade."""
    return as_decimal(total) >= as_decimal(threshold)


def grade_outcome(
    scores: Mapping[str, Any],
    scale: GradingScale | Sequence[GradeBand] | None = None,
    maxima: Mapping[str, Any] | None = None,
    threshold: Any = PASSING_THRESHOLD,
    cap: Decimal = TOTAL_CAP,
) -> GradeOutcome:
    """Compute total, grade and pass/fail for one set of scores."""
    total = compute_total(scores, maxima, cap)
    return GradeOutcome(
        total=total,
        grade=classify(total, scale),
        passed=has_passed(total, threshold),
    )


def aggregate(
    totals: Iterable[Any],
    scale: GradingScale | Sequence[GradeBand] | None = None,
    threshold: Any = PASSING_THRESHOLD,
) -> ClassStatistics:
    """
    Aggregate student totals into class statistics.

    An empty input yields zeroed statistics with every band label
    present in the distribution at 0.
    """
    active = resolve_scale(scale)
    values = [as_decimal(t) for t in totals]
    distribution = {label: 0 for label in active.labels}

    if not values:
        return ClassStatistics(distribution=distribution)

    passed_count = 0
    for value in values:
        distribution[classify(value, active)] += 1
        if has_passed(value, threshold):
            passed_count += 1

    count = len(values)
    return ClassStatistics(
        average=_round2(sum(values, Decimal(0)) / count),
        highest=max(values),
        lowest=min(values),
        pass_rate=_round2(Decimal(passed_count) / count * 100),
        passed_count=passed_count,
        failed_count=count - passed_count,
        distribution=distribution,
    )


def assessment_percentage(score: Any, max_score: Any) -> Decimal:
    """Score as a percentage of the assessment maximum, to 2 decimals."""
    maximum = as_decimal(max_score)
    if maximum <= 0:
        return Decimal("0.00")
    return _round2(as_decimal(score) / maximum * 100)


def scores_by_student(
    marks: Iterable[StoredMark], offering: CourseOffering
) -> dict[str, dict[str, Decimal]]:
    """
    Group an offering's stored marks by student.

    Returns:
        Student id -> (assessment id -> score).
    """
    grouped: dict[str, dict[str, Decimal]] = defaultdict(dict)
    for mark in marks:
        if mark.offering_id != offering.id:
            continue
        grouped[mark.student_id][mark.assessment_id] = mark.score
    return dict(grouped)


def student_totals(
    marks: Iterable[StoredMark], offering: CourseOffering, cap: Decimal = TOTAL_CAP
) -> dict[str, Decimal]:
    """
    Total every student's marks across the offering's assessments.

    Raises:
        UnknownAssessmentTypeError: If a mark targets an assessment the
            offering does not define.
    """
    maxima = offering.maxima
    return {
        student_id: compute_total(scores, maxima, cap)
        for student_id, scores in scores_by_student(marks, offering).items()
    }
