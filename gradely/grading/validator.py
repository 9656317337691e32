"""
Score validation module.

Checks submitted scores at the submission boundary so that the pure
grading functions only ever see well-formed input.
"""

from decimal import Decimal
from typing import Any, Mapping

from gradely.models import (
    SCORE_PLACES,
    AssessmentDefinition,
    CourseOffering,
    ScoreSubmission,
    as_decimal,
    decimal_places,
)


class SubmissionError(Exception):
    """Raised when a score submission is refused; ``field`` names the culprit."""

    def __init__(self, field: str | None, message: str):
        self.field = field
        super().__init__(message)


class InvalidScoreError(SubmissionError):
    """Raised when a score is non-numeric, negative, or above the assessment maximum."""

    def __init__(self, message: str, field: str = "score"):
        super().__init__(field, message)


class UnknownAssessmentTypeError(SubmissionError):
    """Raised when an assessment kind has no configured maximum."""

    def __init__(self, kind: str, field: str = "assessmentId"):
        self.kind = kind
        super().__init__(field, f"Unknown assessment type: '{kind}' has no configured maximum")


class ScoreValidator:
    """
    Validates scores against assessment maxima.

    Checks:
    1. Score is a finite number
    2. Score is not negative
    3. Score does not exceed the assessment's max score
    4. Score has at most two decimal places
    5. The assessment kind is known
    """

    def validate(self, score: Any, assessment: AssessmentDefinition) -> tuple[bool, list[str]]:
        """
        Validate a single score and return any issues found.

        Args:
            score: Raw score value.
            assessment: The assessment the score is recorded against.

        Returns:
            Tuple of (is_valid, list of issues).
        """
        return self._check_value(score, assessment.max_score, assessment.name)

    def validate_or_raise(self, score: Any, assessment: AssessmentDefinition) -> Decimal:
        """
        Validate a single score and raise if invalid.

        Returns:
            The score as a Decimal.

        Raises:
            InvalidScoreError: If validation fails.
        """
        is_valid, issues = self.validate(score, assessment)
        if not is_valid:
            raise InvalidScoreError("; ".join(issues))
        return as_decimal(score)

    def validate_breakdown(
        self, scores: Mapping[str, Any], maxima: Mapping[str, Any]
    ) -> tuple[bool, list[str]]:
        """Validate a kind -> score mapping, collecting every issue."""
        issues: list[str] = []

        for kind, value in scores.items():
            if kind not in maxima:
                issues.append(f"Invalid assessment type: {kind}")
                continue
            _, kind_issues = self._check_value(value, as_decimal(maxima[kind]), kind)
            issues.extend(kind_issues)

        return len(issues) == 0, issues

    def check_breakdown(self, scores: Mapping[str, Any], maxima: Mapping[str, Any]) -> None:
        """
        Raise on the first invalid entry of a kind -> score mapping.

        Raises:
            UnknownAssessmentTypeError: If a kind has no configured maximum.
            InvalidScoreError: If a score is out of range; ``field`` is the kind.
        """
        for kind, value in scores.items():
            if kind not in maxima:
                raise UnknownAssessmentTypeError(kind, field=kind)
            is_valid, issues = self._check_value(value, as_decimal(maxima[kind]), kind)
            if not is_valid:
                raise InvalidScoreError("; ".join(issues), field=kind)

    def check_submission(
        self, submission: ScoreSubmission, offering: CourseOffering
    ) -> AssessmentDefinition:
        """
        Check a submission against its offering.

        Returns:
            The assessment the submission targets.

        Raises:
            SubmissionError: If the submission belongs to another offering.
            UnknownAssessmentTypeError: If the assessment is not in the offering.
            InvalidScoreError: If the score is out of range.
        """
        if submission.offering_id != offering.id:
            raise SubmissionError(
                "offeringId",
                f"Offering '{submission.offering_id}' does not match '{offering.id}'",
            )

        assessment = offering.assessment(submission.assessment_id)
        if assessment is None:
            raise UnknownAssessmentTypeError(submission.assessment_id)

        self.validate_or_raise(submission.score, assessment)
        return assessment

    def _check_value(self, value: Any, max_score: Decimal, label: str) -> tuple[bool, list[str]]:
        """Check one value against its ceiling."""
        try:
            score = as_decimal(value)
        except ValueError:
            return False, [f"Score for {label} must be a valid number"]

        issues: list[str] = []
        if score < 0:
            issues.append(f"Score for {label} cannot be negative")
        elif score > max_score:
            issues.append(f"Score cannot exceed {max_score} for {label}")
        elif decimal_places(score) > SCORE_PLACES:
            issues.append(
                f"Score for {label} cannot have more than {SCORE_PLACES} decimal places"
            )

        return len(issues) == 0, issues
