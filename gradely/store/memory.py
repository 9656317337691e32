"""
In-memory mark store.

Volatile storage for tests and ``memory://`` configurations. The dict
key is the (assessment, student) pair, so uniqueness holds by construction;
a lock makes each upsert atomic across threads.
"""

import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence
from uuid import uuid4

from gradely.models import GradeBand, StoredMark
from gradely.store.base import MarkStore, ScaleSource

logger = logging.getLogger(__name__)


class InMemoryMarkStore(MarkStore):
    """Mark store backed by a dict keyed on (assessment_id, student_id)."""

    def __init__(self) -> None:
        self._marks: dict[tuple[str, str], StoredMark] = {}
        self._lock = threading.Lock()

    def upsert(
        self,
        assessment_id: str,
        student_id: str,
        offering_id: str,
        grader_id: str,
        score: Decimal,
    ) -> StoredMark:
        now = datetime.now(timezone.utc)
        key = (assessment_id, student_id)
        value = self._storable_score(score)

        with self._lock:
            existing = self._marks.get(key)
            if existing is None:
                mark = StoredMark(
                    id=uuid4().hex,
                    assessment_id=assessment_id,
                    student_id=student_id,
                    offering_id=offering_id,
                    grader_id=grader_id,
                    score=value,
                    created_at=now,
                    updated_at=now,
                )
                logger.debug("Created mark %s for %s/%s", mark.id, assessment_id, student_id)
            else:
                mark = existing.model_copy(
                    update={"score": value, "grader_id": grader_id, "updated_at": now}
                )
                logger.debug("Overwrote mark %s for %s/%s", mark.id, assessment_id, student_id)
            self._marks[key] = mark

        return mark

    def get(self, assessment_id: str, student_id: str) -> StoredMark | None:
        with self._lock:
            return self._marks.get((assessment_id, student_id))

    def marks_for_offering(self, offering_id: str) -> list[StoredMark]:
        with self._lock:
            marks = [m for m in self._marks.values() if m.offering_id == offering_id]
        return sorted(marks, key=lambda m: (m.student_id, m.assessment_id))

    def count(self) -> int:
        with self._lock:
            return len(self._marks)


class InMemoryScaleSource(ScaleSource):
    """Scale source holding bands in memory."""

    def __init__(self, bands: Sequence[GradeBand] = ()) -> None:
        self._bands: list[GradeBand] = list(bands)

    def active_bands(self) -> list[GradeBand]:
        return sorted(self._bands, key=lambda b: b.min_score, reverse=True)

    def replace_bands(self, bands: Sequence[GradeBand]) -> None:
        self._bands = list(bands)
