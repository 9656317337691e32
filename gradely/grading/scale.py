"""
Grade classification against a grading scale.

Totals are clamped into the scale's range, then truncated to the whole
mark they have reached, so every numeric total maps to exactly one band.
"""

from decimal import ROUND_FLOOR, Decimal
from typing import Any, Sequence

from pydantic import ValidationError

from gradely.models import GradeBand, GradingScale, as_decimal


class GradingScaleError(Exception):
    """Raised when a configured grading scale is malformed."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


# Embedded fallback used whenever no scale is configured
DEFAULT_GRADING_SCALE = GradingScale(
    bands=(
        GradeBand(label="A", min_score=90, max_score=100, grade_point=Decimal("4.0")),
        GradeBand(label="A-", min_score=87, max_score=89, grade_point=Decimal("3.7")),
        GradeBand(label="B+", min_score=84, max_score=86, grade_point=Decimal("3.3")),
        GradeBand(label="B", min_score=80, max_score=83, grade_point=Decimal("3.0")),
        GradeBand(label="B-", min_score=77, max_score=79, grade_point=Decimal("2.7")),
        GradeBand(label="C+", min_score=74, max_score=76, grade_point=Decimal("2.3")),
        GradeBand(label="C", min_score=70, max_score=73, grade_point=Decimal("2.0")),
        GradeBand(label="C-", min_score=67, max_score=69, grade_point=Decimal("1.7")),
        GradeBand(label="D+", min_score=64, max_score=66, grade_point=Decimal("1.3")),
        GradeBand(label="D", min_score=62, max_score=63, grade_point=Decimal("1.0")),
        GradeBand(label="D-", min_score=60, max_score=61, grade_point=Decimal("0.7")),
        GradeBand(label="F", min_score=0, max_score=59, grade_point=Decimal("0.0")),
    )
)


def resolve_scale(scale: GradingScale | Sequence[GradeBand] | None) -> GradingScale:
    """
    Turn a configured band list into a grading scale.

    An absent or empty band list selects ``DEFAULT_GRADING_SCALE``.

    Raises:
        GradingScaleError: If the configured bands have gaps or overlaps.
    """
    if isinstance(scale, GradingScale):
        return scale
    if not scale:
        return DEFAULT_GRADING_SCALE
    try:
        return GradingScale(bands=tuple(scale))
    except ValidationError as e:
        raise GradingScaleError(f"Invalid grading scale: {e}", cause=e) from e


def band_for(total: Any, scale: GradingScale | Sequence[GradeBand] | None = None) -> GradeBand:
    """
    Find the grade band for a total.

    Totals above the top band classify as the top band; totals below
    the bottom band classify as the bottom band. In between, a total
    earns the band of the whole mark it has reached (89.99 is an 89).
    """
    active = resolve_scale(scale)
    value = as_decimal(total)

    # Clamp first so totals beyond the context precision never reach quantize
    if value > active.top_band.max_score:
        return active.top_band
    if value < active.bottom_band.min_score:
        return active.bottom_band

    mark = value.quantize(Decimal("1"), rounding=ROUND_FLOOR)
    for band in active.bands:
        if band.contains(mark):
            return band
    return active.bottom_band


def classify(total: Any, scale: GradingScale | Sequence[GradeBand] | None = None) -> str:
    """
    Classify a total into a letter grade.

    Args:
        total: Numeric total, normally in [0, 100].
        scale: Grading scale or band list; default scale if omitted or empty.

    Returns:
        The band label (e.g. "B+").
    """
    return band_for(total, scale).label
