"""
Pydantic models for Gradely.

These models define the schemas for:
- Course offerings and their assessment definitions
- Score submissions and stored marks
- Grade bands and grading scales
- Per-student outcomes and class statistics

Wire names are camelCase (``assessmentId``); attributes are snake_case.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


def as_decimal(value: Any) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Raises:
        ValueError: If the value is boolean, non-numeric, NaN or infinite.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid numeric value: {value!r}")
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid numeric value: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value!r}")
    return result


# Marks are recorded to the hundredth
SCORE_PLACES = 2


def decimal_places(value: Decimal) -> int:
    """Number of significant digits after the decimal point (8.10 has 1)."""
    exponent = value.normalize().as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


def _as_identifier(value: Any) -> Any:
    """Coerce spreadsheet-style numeric ids (1001, 1001.0) to strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


class GradelyModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ==============================================================================
# Offering Models
# ==============================================================================


class AssessmentDefinition(GradelyModel):
    """
    A gradable component of an offering (e.g. "Quiz 1").

    ``max_score`` is the ceiling for any score recorded against it.
    """

    id: str = Field(..., min_length=1, description="Assessment identifier")

    name: str = Field(..., min_length=1, max_length=200, description="Display name")

    weight: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Nominal weight within the offering (informational)",
    )

    max_score: Decimal = Field(..., gt=0, description="Highest score that may be recorded")

    @field_validator("id", mode="before")
    @classmethod
    def convert_id(cls, v: Any) -> Any:
        return _as_identifier(v)

    @field_validator("weight", "max_score", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return as_decimal(v)


class CourseOffering(GradelyModel):
    """
    A term/year instance of a course with its own assessment list.

    Assessment ids must be unique within the offering.
    """

    id: str = Field(..., min_length=1, description="Offering identifier")

    course_code: str = Field(default="", description="Course code (e.g. 'CS101')")

    title: str = Field(default="", description="Course title")

    term: str = Field(default="", description="Academic term")

    year: int | None = Field(default=None, description="Academic year")

    assessments: tuple[AssessmentDefinition, ...] = Field(
        ...,
        min_length=1,
        description="Assessments belonging to this offering",
    )

    @field_validator("id", mode="before")
    @classmethod
    def convert_id(cls, v: Any) -> Any:
        return _as_identifier(v)

    @model_validator(mode="after")
    def validate_unique_assessments(self) -> "CourseOffering":
        """Ensure no duplicate assessment ids."""
        ids = [a.id for a in self.assessments]
        if len(ids) != len(set(ids)):
            duplicates = {i for i in ids if ids.count(i) > 1}
            raise ValueError(f"Duplicate assessment ids found: {sorted(duplicates)}")
        return self

    @property
    def maxima(self) -> dict[str, Decimal]:
        """Map of assessment id to its maximum score."""
        return {a.id: a.max_score for a in self.assessments}

    def assessment(self, assessment_id: str) -> AssessmentDefinition | None:
        """Look up an assessment by id."""
        for candidate in self.assessments:
            if candidate.id == assessment_id:
                return candidate
        return None


# ==============================================================================
# Mark Models
# ==============================================================================


class ScoreSubmission(GradelyModel):
    """One entry of a batch score submission."""

    assessment_id: str = Field(..., min_length=1)

    student_id: str = Field(..., min_length=1)

    offering_id: str = Field(..., min_length=1)

    score: Decimal = Field(..., description="Submitted score, checked against the assessment")

    @field_validator("assessment_id", "student_id", "offering_id", mode="before")
    @classmethod
    def convert_id(cls, v: Any) -> Any:
        return _as_identifier(v)

    @field_validator("score", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        """Reject non-numeric scores."""
        try:
            return as_decimal(v)
        except ValueError as e:
            raise ValueError("Score must be a valid number") from e


class StoredMark(GradelyModel):
    """
    A score record as persisted by a mark store.

    ``id`` and ``created_at`` survive overwrites; ``score``, ``grader_id``
    and ``updated_at`` reflect the latest write.
    """

    model_config = ConfigDict(strict=True)

    id: str

    assessment_id: str

    student_id: str

    offering_id: str

    grader_id: str = Field(..., description="Lecturer who performed the latest write")

    score: Decimal = Field(..., ge=0)

    created_at: datetime

    updated_at: datetime

    @field_validator("score", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        return as_decimal(v)


# ==============================================================================
# Grading Scale Models
# ==============================================================================


class GradeBand(GradelyModel):
    """A contiguous, inclusive score range mapped to a letter grade."""

    model_config = ConfigDict(strict=True)

    label: str = Field(..., min_length=1, max_length=8, description="Letter grade (e.g. 'B+')")

    min_score: Decimal = Field(..., ge=0, description="Lowest total in the band (inclusive)")

    max_score: Decimal = Field(..., description="Highest total in the band (inclusive)")

    grade_point: Decimal = Field(default=Decimal("0"), ge=0, description="Grade point value")

    @field_validator("min_score", "max_score", "grade_point", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return as_decimal(v)

    @model_validator(mode="after")
    def validate_range(self) -> "GradeBand":
        """Ensure the band is not inverted."""
        if self.min_score > self.max_score:
            raise ValueError(
                f"Band '{self.label}' has min_score ({self.min_score}) "
                f"greater than max_score ({self.max_score})"
            )
        return self

    def contains(self, total: Decimal) -> bool:
        """Check whether a total falls inside this band."""
        return self.min_score <= total <= self.max_score


class GradingScale(GradelyModel):
    """
    An ordered set of grade bands partitioning [0, 100].

    The scale is validated to ensure:
    - Band labels are unique
    - Every integer total in [0, 100] matches exactly one band

    Bands are kept highest first.
    """

    bands: tuple[GradeBand, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_partition(self) -> "GradingScale":
        """Sort bands and reject gaps and overlaps."""
        ordered = tuple(sorted(self.bands, key=lambda b: b.min_score, reverse=True))
        # Use object.__setattr__ because model is frozen
        object.__setattr__(self, "bands", ordered)

        labels = [b.label for b in ordered]
        if len(labels) != len(set(labels)):
            duplicates = {label for label in labels if labels.count(label) > 1}
            raise ValueError(f"Duplicate band labels found: {sorted(duplicates)}")

        gaps: list[int] = []
        overlaps: list[int] = []
        for total in range(0, 101):
            matches = sum(1 for band in ordered if band.contains(Decimal(total)))
            if matches == 0:
                gaps.append(total)
            elif matches > 1:
                overlaps.append(total)

        if gaps:
            raise ValueError(f"Grading scale leaves totals uncovered: {gaps[:10]}")
        if overlaps:
            raise ValueError(f"Grading scale has overlapping bands at totals: {overlaps[:10]}")
        return self

    @property
    def top_band(self) -> GradeBand:
        return self.bands[0]

    @property
    def bottom_band(self) -> GradeBand:
        return self.bands[-1]

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(b.label for b in self.bands)


# ==============================================================================
# Result Models
# ==============================================================================


class GradeOutcome(GradelyModel):
    """Total, letter grade and pass/fail for one set of scores."""

    total: Decimal

    grade: str

    passed: bool


class StudentResult(GradeOutcome):
    """A student's outcome within an offering."""

    student_id: str

    scores: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Recorded score per assessment id",
    )


class ClassStatistics(GradelyModel):
    """
    Aggregate statistics over a set of student totals.

    ``average`` and ``pass_rate`` are rounded to 2 decimal places.
    """

    average: Decimal = Decimal("0")

    highest: Decimal = Decimal("0")

    lowest: Decimal = Decimal("0")

    pass_rate: Decimal = Field(default=Decimal("0"), description="Percentage of students who passed")

    passed_count: int = Field(default=0, ge=0)

    failed_count: int = Field(default=0, ge=0)

    distribution: dict[str, int] = Field(
        default_factory=dict,
        description="Number of students per grade band label",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_students(self) -> int:
        """Number of totals aggregated."""
        return self.passed_count + self.failed_count


# ==============================================================================
# Submission Result Models
# ==============================================================================


class SubmissionOutcome(GradelyModel):
    """Per-entry result of a batch submission."""

    index: int = Field(..., ge=0, description="Position of the entry in the batch")

    accepted: bool

    mark: StoredMark | None = None

    field: str | None = Field(default=None, description="Offending field of a rejected entry")

    error: str | None = Field(default=None, description="Reason a rejected entry was refused")


class BatchSubmissionResult(GradelyModel):
    """Outcome of every entry in a batch submission, in input order."""

    outcomes: tuple[SubmissionOutcome, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def accepted_count(self) -> int:
        return sum(1 for o in self.outcomes if o.accepted)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def rejected_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.accepted)

    @property
    def rejected(self) -> tuple[SubmissionOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.accepted)
