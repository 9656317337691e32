"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import json
import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest

from gradely.config import Settings
from gradely.grading import STANDARD_ASSESSMENTS, GradingEngine
from gradely.models import AssessmentDefinition, CourseOffering
from gradely.store import InMemoryMarkStore, InMemoryScaleSource, SqlMarkStore, SqlScaleSource


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ==============================================================================
# Offering Fixtures
# ==============================================================================


@pytest.fixture
def standard_offering() -> CourseOffering:
    """Offering using the five-category breakdown."""
    return CourseOffering(
        id="off-cs101",
        course_code="CS101",
        title="Introduction to Programming",
        term="Fall",
        year=2025,
        assessments=STANDARD_ASSESSMENTS,
    )


@pytest.fixture
def exam_offering() -> CourseOffering:
    """Offering with two offering-defined exams."""
    return CourseOffering(
        id="off-ma201",
        course_code="MA201",
        title="Linear Algebra",
        term="Spring",
        year=2026,
        assessments=(
            AssessmentDefinition(id="midterm", name="Midterm Exam", weight=30, max_score=30),
            AssessmentDefinition(id="final", name="Final Exam", weight=70, max_score=70),
        ),
    )


@pytest.fixture
def offering_file(temp_dir: Path, standard_offering: CourseOffering) -> Path:
    """Write the standard offering as JSON."""
    file_path = temp_dir / "offering.json"
    file_path.write_text(
        standard_offering.model_dump_json(by_alias=True), encoding="utf-8"
    )
    return file_path


# ==============================================================================
# Mark Fixtures
# ==============================================================================


@pytest.fixture
def scenario_scores() -> dict[str, int]:
    """Scores that total 83."""
    return {"assignment": 8, "quiz": 13, "project": 20, "midsem": 17, "finalExam": 25}


@pytest.fixture
def sample_entries() -> list[dict[str, Any]]:
    """Batch entries for two students in the standard offering."""
    entries: list[dict[str, Any]] = []
    for student_id, scores in (
        ("s-001", {"assignment": 8, "quiz": 13, "project": 20, "midsem": 17, "finalExam": 25}),
        ("s-002", {"assignment": 5, "quiz": 10, "project": 15, "midsem": 12, "finalExam": 17}),
    ):
        for assessment_id, score in scores.items():
            entries.append(
                {
                    "assessmentId": assessment_id,
                    "studentId": student_id,
                    "offeringId": "off-cs101",
                    "score": score,
                }
            )
    return entries


@pytest.fixture
def mark_sheet_json(temp_dir: Path, sample_entries: list[dict[str, Any]]) -> Path:
    """Write the sample entries as a JSON mark sheet."""
    file_path = temp_dir / "marks.json"
    file_path.write_text(json.dumps({"marks": sample_entries}), encoding="utf-8")
    return file_path


# ==============================================================================
# Settings and Store Fixtures
# ==============================================================================


@pytest.fixture
def database_url(temp_dir: Path) -> str:
    """SQLite database URL inside the temporary directory."""
    return f"sqlite:///{temp_dir / 'gradely.db'}"


@pytest.fixture
def test_settings(temp_dir: Path, database_url: str) -> Settings:
    """Create test settings backed by a temporary SQLite database."""
    return Settings(
        database_url=database_url,
        passing_threshold=60,
        total_cap=100,
        log_level="WARNING",
        output_directory=temp_dir / "output",
    )


@pytest.fixture
def memory_store() -> InMemoryMarkStore:
    return InMemoryMarkStore()


@pytest.fixture
def memory_scales() -> InMemoryScaleSource:
    return InMemoryScaleSource()


@pytest.fixture(params=["memory", "sqlite"])
def mark_store(request: pytest.FixtureRequest, database_url: str):
    """Every mark store implementation."""
    store = InMemoryMarkStore() if request.param == "memory" else SqlMarkStore(database_url)
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def scale_source(request: pytest.FixtureRequest, database_url: str):
    """Every scale source implementation."""
    source = InMemoryScaleSource() if request.param == "memory" else SqlScaleSource(database_url)
    yield source
    source.close()


@pytest.fixture
def engine(
    test_settings: Settings,
    memory_store: InMemoryMarkStore,
    memory_scales: InMemoryScaleSource,
) -> GradingEngine:
    """Grading engine over in-memory stores."""
    return GradingEngine(test_settings, store=memory_store, scales=memory_scales)
