"""
Base classes for mark and grading-scale storage.

Defines the abstract interfaces that every store must implement.
The (assessment, student) pair is unique: implementations enforce it
at the storage layer, never with a read-then-write check.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Sequence

from gradely.models import SCORE_PLACES, GradeBand, StoredMark, as_decimal, decimal_places


class StoreError(Exception):
    """
    Raised when a storage operation fails.

    Wraps the driver-level exception in ``cause``.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class MarkStore(ABC):
    """
    Abstract keyed store of marks.

    ``upsert`` creates a mark for a new (assessment, student) pair and
    otherwise overwrites its score and grader, preserving identity and
    creation time. Each upsert is atomic. Scores are kept exactly; a score
    with more than two decimal places is refused, never rounded.
    """

    @abstractmethod
    def upsert(
        self,
        assessment_id: str,
        student_id: str,
        offering_id: str,
        grader_id: str,
        score: Decimal,
    ) -> StoredMark:
        """
        Create or overwrite the mark for (assessment_id, student_id).

        Returns:
            The mark as stored after the write.

        Raises:
            StoreError: If the write fails or the score has more than two
                decimal places.
        """
        ...

    @abstractmethod
    def get(self, assessment_id: str, student_id: str) -> StoredMark | None:
        """Fetch the mark for a key, or None."""
        ...

    @abstractmethod
    def marks_for_offering(self, offering_id: str) -> list[StoredMark]:
        """Return every mark recorded against an offering."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of stored marks."""
        ...

    def health_check(self) -> bool:
        """
        Check if the store is reachable.

        Returns:
            True if the store answers, False otherwise.
        """
        try:
            self.count()
        except StoreError:
            return False
        return True

    def close(self) -> None:
        """Release held connections. The store must not be used afterwards."""

    @staticmethod
    def _storable_score(score: Decimal) -> Decimal:
        """
        Check a score fits the stored precision, unchanged.

        Raises:
            StoreError: If the score has more than two decimal places.
        """
        value = as_decimal(score)
        if decimal_places(value) > SCORE_PLACES:
            raise StoreError(
                f"Score {value} has more than {SCORE_PLACES} decimal places"
            )
        return value


class ScaleSource(ABC):
    """
    Abstract source of the active grading scale.

    An empty band list means "no scale configured"; callers fall back
    to the default scale.
    """

    @abstractmethod
    def active_bands(self) -> list[GradeBand]:
        """Return the configured bands, highest first, or an empty list."""
        ...

    @abstractmethod
    def replace_bands(self, bands: Sequence[GradeBand]) -> None:
        """Replace the configured bands."""
        ...

    def close(self) -> None:
        """Release held connections. The source must not be used afterwards."""

    def seed(self, bands: Sequence[GradeBand]) -> bool:
        """
        Configure ``bands`` if no scale is configured yet.

        Returns:
            True if the bands were written, False if a scale already existed.
        """
        if self.active_bands():
            return False
        self.replace_bands(bands)
        return True
