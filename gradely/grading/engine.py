"""
Grading engine - the core orchestrator.

Accepts batch score submissions, validates each entry at the boundary,
upserts accepted marks, and reads marks back to compute per-student
results and class statistics for an offering.
"""

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from gradely.config import Settings, get_settings
from gradely.grading.calculator import aggregate, compute_total, has_passed, scores_by_student
from gradely.grading.scale import DEFAULT_GRADING_SCALE, classify, resolve_scale
from gradely.grading.validator import ScoreValidator, SubmissionError
from gradely.models import (
    BatchSubmissionResult,
    ClassStatistics,
    CourseOffering,
    GradingScale,
    ScoreSubmission,
    StudentResult,
    SubmissionOutcome,
)
from gradely.store import MarkStore, ScaleSource, StoreError, create_stores

logger = logging.getLogger(__name__)


class GradingEngine:
    """
    Main grading engine.

    Wires the pure grading functions to a mark store and a scale source.
    Holds no state between calls beyond those collaborators.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: MarkStore | None = None,
        scales: ScaleSource | None = None,
    ):
        """
        Initialize the grading engine.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
            store: Mark store. Built from ``settings.database_url`` if not provided.
            scales: Grading-scale source. Built from ``settings.database_url`` if not provided.
        """
        self._settings = settings or get_settings()
        if store is None or scales is None:
            default_store, default_scales = create_stores(self._settings.database_url)
            store = store or default_store
            scales = scales or default_scales
        self._store = store
        self._scales = scales
        self._validator = ScoreValidator()

    def submit_marks(
        self,
        offering: CourseOffering,
        entries: Iterable[Mapping[str, Any]],
        grader_id: str,
    ) -> BatchSubmissionResult:
        """
        Validate and upsert a batch of score submissions.

        Each entry is applied independently: a rejected entry is reported
        with its offending field and later entries are still applied.

        Args:
            offering: The offering the scores belong to.
            entries: Raw entries with assessmentId, studentId, offeringId and score.
            grader_id: Lecturer performing the writes.

        Returns:
            Per-entry outcomes in input order.

        Raises:
            SubmissionError: If ``grader_id`` is blank.
        """
        if not grader_id or not grader_id.strip():
            raise SubmissionError("graderId", "A grader id is required to submit marks")

        outcomes: list[SubmissionOutcome] = []

        for index, entry in enumerate(entries):
            try:
                submission = ScoreSubmission.model_validate(entry)
            except ValidationError as e:
                outcomes.append(self._rejection_from_validation(index, e))
                continue

            try:
                self._validator.check_submission(submission, offering)
                mark = self._store.upsert(
                    assessment_id=submission.assessment_id,
                    student_id=submission.student_id,
                    offering_id=submission.offering_id,
                    grader_id=grader_id,
                    score=submission.score,
                )
            except SubmissionError as e:
                logger.warning("Rejected entry %d (%s): %s", index, e.field, e)
                outcomes.append(
                    SubmissionOutcome(index=index, accepted=False, field=e.field, error=str(e))
                )
                continue
            except StoreError as e:
                logger.error("Store failure on entry %d: %s", index, e)
                outcomes.append(SubmissionOutcome(index=index, accepted=False, error=str(e)))
                continue

            outcomes.append(SubmissionOutcome(index=index, accepted=True, mark=mark))

        result = BatchSubmissionResult(outcomes=tuple(outcomes))
        logger.info(
            "Batch for offering %s by %s: %d accepted, %d rejected",
            offering.id,
            grader_id,
            result.accepted_count,
            result.rejected_count,
        )
        return result

    def active_scale(self) -> GradingScale:
        """
        Get the configured grading scale, or the default one.

        Raises:
            GradingScaleError: If the configured bands are malformed.
            StoreError: If the scale cannot be read.
        """
        return resolve_scale(self._scales.active_bands())

    def seed_default_scale(self) -> bool:
        """Store the default scale if none is configured."""
        return self._scales.seed(DEFAULT_GRADING_SCALE.bands)

    def offering_results(
        self, offering: CourseOffering, scale: GradingScale | None = None
    ) -> list[StudentResult]:
        """
        Compute every student's total, grade and pass/fail for an offering.

        Returns:
            Results ordered by total (highest first), then student id.

        Raises:
            UnknownAssessmentTypeError: If a stored mark targets an assessment
                the offering does not define.
            StoreError: If marks cannot be read.
        """
        active = scale or self.active_scale()
        marks = self._store.marks_for_offering(offering.id)
        maxima = offering.maxima

        results: list[StudentResult] = []
        for student_id, scores in scores_by_student(marks, offering).items():
            total = compute_total(scores, maxima, self._settings.total_cap)
            results.append(
                StudentResult(
                    student_id=student_id,
                    scores=scores,
                    total=total,
                    grade=classify(total, active),
                    passed=has_passed(total, self._settings.passing_threshold),
                )
            )

        return sorted(results, key=lambda r: (-r.total, r.student_id))

    def class_statistics(
        self,
        offering: CourseOffering,
        results: list[StudentResult] | None = None,
        scale: GradingScale | None = None,
    ) -> ClassStatistics:
        """
        Aggregate class statistics for an offering.

        Args:
            offering: The offering.
            results: Precomputed results; computed from the store if omitted.
            scale: Grading scale; the active scale if omitted.
        """
        active = scale or self.active_scale()
        if results is None:
            results = self.offering_results(offering, active)
        return aggregate(
            (r.total for r in results),
            active,
            self._settings.passing_threshold,
        )

    def health_check(self) -> bool:
        """
        Check if the grading engine is operational.

        Returns:
            True if the mark store is reachable.
        """
        return self._store.health_check()

    def close(self) -> None:
        """Release the store and scale-source connections."""
        self._store.close()
        self._scales.close()

    def __enter__(self) -> "GradingEngine":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _rejection_from_validation(self, index: int, error: ValidationError) -> SubmissionOutcome:
        """Report the first schema error of an entry."""
        first = error.errors()[0]
        loc = first.get("loc") or ()
        field = str(loc[0]) if loc else None
        message = first.get("msg", str(error))
        logger.warning("Rejected entry %d (%s): %s", index, field, message)
        return SubmissionOutcome(index=index, accepted=False, field=field, error=message)
