"""
Unit tests for score validation.
"""

from decimal import Decimal

import pytest

from gradely.grading import (
    STANDARD_MAXIMA,
    InvalidScoreError,
    ScoreValidator,
    SubmissionError,
    UnknownAssessmentTypeError,
)
from gradely.models import AssessmentDefinition, CourseOffering, ScoreSubmission


@pytest.fixture
def validator() -> ScoreValidator:
    return ScoreValidator()


@pytest.fixture
def quiz() -> AssessmentDefinition:
    return AssessmentDefinition(id="quiz", name="Quiz", weight=15, max_score=15)


class TestValidate:
    """Tests for single-score validation."""

    @pytest.mark.parametrize("score", [0, 7, "7.5", Decimal("15"), 15.0])
    def test_valid_scores(self, validator: ScoreValidator, quiz: AssessmentDefinition, score) -> None:
        """Test scores within [0, max] are accepted."""
        is_valid, issues = validator.validate(score, quiz)

        assert is_valid is True
        assert issues == []

    def test_negative(self, validator: ScoreValidator, quiz: AssessmentDefinition) -> None:
        """Test negative scores are rejected."""
        is_valid, issues = validator.validate(-1, quiz)

        assert is_valid is False
        assert issues == ["Score for Quiz cannot be negative"]

    def test_above_max(self, validator: ScoreValidator, quiz: AssessmentDefinition) -> None:
        """Test scores above the maximum are rejected."""
        is_valid, issues = validator.validate("15.01", quiz)

        assert is_valid is False
        assert issues == ["Score cannot exceed 15 for Quiz"]

    def test_more_than_two_decimal_places(
        self, validator: ScoreValidator, quiz: AssessmentDefinition
    ) -> None:
        """Test scores finer than a hundredth are rejected, not rounded."""
        is_valid, issues = validator.validate("8.125", quiz)

        assert is_valid is False
        assert issues == ["Score for Quiz cannot have more than 2 decimal places"]
        assert validator.validate("8.10", quiz) == (True, [])


    @pytest.mark.parametrize("score", ["abc", "", None, True, float("nan"), "inf"])
    def test_non_numeric(self, validator: ScoreValidator, quiz: AssessmentDefinition, score) -> None:
        """Test non-numeric and non-finite scores are rejected."""
        is_valid, issues = validator.validate(score, quiz)

        assert is_valid is False
        assert issues == ["Score for Quiz must be a valid number"]

    def test_validate_or_raise(self, validator: ScoreValidator, quiz: AssessmentDefinition) -> None:
        """Test the raising variant returns the score as Decimal."""
        assert validator.validate_or_raise("12.5", quiz) == Decimal("12.5")

        with pytest.raises(InvalidScoreError, match="cannot exceed") as exc_info:
            validator.validate_or_raise(16, quiz)

        assert exc_info.value.field == "score"


class TestBreakdown:
    """Tests for kind -> score mappings."""

    def test_valid_breakdown(self, validator: ScoreValidator, scenario_scores: dict) -> None:
        """Test the reference breakdown passes."""
        is_valid, issues = validator.validate_breakdown(scenario_scores, STANDARD_MAXIMA)

        assert is_valid is True
        assert issues == []

    def test_collects_every_issue(self, validator: ScoreValidator) -> None:
        """Test all problems are reported together."""
        is_valid, issues = validator.validate_breakdown(
            {"quiz": 16, "project": -2, "labs": 5}, STANDARD_MAXIMA
        )

        assert is_valid is False
        assert issues == [
            "Score cannot exceed 15 for quiz",
            "Score for project cannot be negative",
            "Invalid assessment type: labs",
        ]

    def test_check_breakdown_names_kind(self, validator: ScoreValidator) -> None:
        """Test the raising variant names the offending kind."""
        with pytest.raises(InvalidScoreError) as exc_info:
            validator.check_breakdown({"assignment": 5, "midsem": 21}, STANDARD_MAXIMA)

        assert exc_info.value.field == "midsem"
        assert "cannot exceed 20" in str(exc_info.value)

    def test_check_breakdown_unknown_kind(self, validator: ScoreValidator) -> None:
        """Test unknown kinds raise instead of being dropped."""
        with pytest.raises(UnknownAssessmentTypeError) as exc_info:
            validator.check_breakdown({"labs": 5}, STANDARD_MAXIMA)

        assert exc_info.value.kind == "labs"
        assert exc_info.value.field == "labs"


class TestCheckSubmission:
    """Tests for submissions against an offering."""

    def _submission(self, **overrides) -> ScoreSubmission:
        data = {
            "assessmentId": "quiz",
            "studentId": "s-001",
            "offeringId": "off-cs101",
            "score": 10,
        }
        data.update(overrides)
        return ScoreSubmission.model_validate(data)

    def test_accepted(self, validator: ScoreValidator, standard_offering: CourseOffering) -> None:
        """Test a valid submission returns its assessment."""
        assessment = validator.check_submission(self._submission(), standard_offering)

        assert assessment.id == "quiz"

    def test_offering_mismatch(
        self, validator: ScoreValidator, standard_offering: CourseOffering
    ) -> None:
        """Test submissions for another offering are refused."""
        with pytest.raises(SubmissionError) as exc_info:
            validator.check_submission(self._submission(offeringId="off-x"), standard_offering)

        assert exc_info.value.field == "offeringId"

    def test_unknown_assessment(
        self, validator: ScoreValidator, standard_offering: CourseOffering
    ) -> None:
        """Test assessments outside the offering are refused."""
        with pytest.raises(UnknownAssessmentTypeError) as exc_info:
            validator.check_submission(self._submission(assessmentId="labs"), standard_offering)

        assert exc_info.value.field == "assessmentId"

    def test_uses_offering_maximum(
        self, validator: ScoreValidator, exam_offering: CourseOffering
    ) -> None:
        """Test the ceiling comes from the offering's assessment definition."""
        ok = self._submission(assessmentId="final", offeringId="off-ma201", score=70)
        too_high = self._submission(assessmentId="final", offeringId="off-ma201", score=71)

        assert validator.check_submission(ok, exam_offering).max_score == 70
        with pytest.raises(InvalidScoreError, match="Final Exam"):
            validator.check_submission(too_high, exam_offering)
