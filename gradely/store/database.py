"""
SQLAlchemy-backed mark store and scale source.

The ``marks`` table carries a unique constraint on (assessment_id, student_id)
and upserts are issued as a single INSERT ... ON CONFLICT DO UPDATE, so
concurrent writers for the same key serialize in the database.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence
from uuid import uuid4

from sqlalchemy import (
    DateTime,
    Engine,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from gradely.models import GradeBand, StoredMark
from gradely.store.base import MarkStore, ScaleSource, StoreError

logger = logging.getLogger(__name__)

# Dialects that support INSERT ... ON CONFLICT
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class Base(DeclarativeBase):
    pass


class MarkRow(Base):
    __tablename__ = "marks"
    __table_args__ = (
        UniqueConstraint("assessment_id", "student_id", name="uq_marks_assessment_student"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    assessment_id: Mapped[str] = mapped_column(String(64), nullable=False)
    student_id: Mapped[str] = mapped_column(String(64), nullable=False)
    offering_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    grader_id: Mapped[str] = mapped_column(String(64), nullable=False)
    score: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class GradeBandRow(Base):
    __tablename__ = "grade_bands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(8), unique=True, nullable=False)
    min_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    max_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    grade_point: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=0)


def create_db_engine(url: str) -> Engine:
    """
    Create an engine and make sure the schema exists.

    The caller owns the engine and disposes it when done.

    Raises:
        StoreError: If the engine cannot be created or the schema written.
    """
    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout is a new empty database
            kwargs["poolclass"] = StaticPool

    try:
        engine = create_engine(url, **kwargs)
        Base.metadata.create_all(engine)
    except SQLAlchemyError as e:
        raise StoreError(f"Cannot open database '{url}': {e}", cause=e) from e
    return engine


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_mark(row: MarkRow) -> StoredMark:
    return StoredMark(
        id=row.id,
        assessment_id=row.assessment_id,
        student_id=row.student_id,
        offering_id=row.offering_id,
        grader_id=row.grader_id,
        score=row.score,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlMarkStore(MarkStore):
    """
    Mark store persisted through SQLAlchemy (SQLite or PostgreSQL).

    Accepts an engine or a URL to build one from. ``close()`` disposes
    the engine's connection pool.
    """

    def __init__(self, engine: Engine | str):
        self._engine = create_db_engine(engine) if isinstance(engine, str) else engine
        Base.metadata.create_all(self._engine)
        self._sessions = sessionmaker(bind=self._engine, expire_on_commit=False)

        insert = _UPSERT_INSERTS.get(self._engine.dialect.name)
        if insert is None:
            self.close()
            raise StoreError(
                f"Dialect '{self._engine.dialect.name}' does not support keyed upserts; "
                f"use one of {sorted(_UPSERT_INSERTS)}"
            )
        self._insert = insert

    def upsert(
        self,
        assessment_id: str,
        student_id: str,
        offering_id: str,
        grader_id: str,
        score: Decimal,
    ) -> StoredMark:
        value = self._storable_score(score)
        now = _utcnow()
        stmt = self._insert(MarkRow.__table__).values(
            id=uuid4().hex,
            assessment_id=assessment_id,
            student_id=student_id,
            offering_id=offering_id,
            grader_id=grader_id,
            score=value,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["assessment_id", "student_id"],
            set_={
                "score": stmt.excluded.score,
                "grader_id": stmt.excluded.grader_id,
                "updated_at": stmt.excluded.updated_at,
            },
        )

        try:
            with self._sessions.begin() as session:
                session.execute(stmt)
                row = session.scalars(
                    select(MarkRow).where(
                        MarkRow.assessment_id == assessment_id,
                        MarkRow.student_id == student_id,
                    )
                ).one()
                mark = _to_mark(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to store mark for {assessment_id}/{student_id}: {e}", cause=e) from e

        logger.debug("Stored mark %s for %s/%s = %s", mark.id, assessment_id, student_id, mark.score)
        return mark

    def get(self, assessment_id: str, student_id: str) -> StoredMark | None:
        try:
            with self._sessions() as session:
                row = session.scalars(
                    select(MarkRow).where(
                        MarkRow.assessment_id == assessment_id,
                        MarkRow.student_id == student_id,
                    )
                ).one_or_none()
                return _to_mark(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read mark: {e}", cause=e) from e

    def marks_for_offering(self, offering_id: str) -> list[StoredMark]:
        try:
            with self._sessions() as session:
                rows = session.scalars(
                    select(MarkRow)
                    .where(MarkRow.offering_id == offering_id)
                    .order_by(MarkRow.student_id, MarkRow.assessment_id)
                ).all()
                return [_to_mark(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read marks for offering {offering_id}: {e}", cause=e) from e

    def count(self) -> int:
        try:
            with self._sessions() as session:
                return session.scalar(select(func.count()).select_from(MarkRow)) or 0
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to count marks: {e}", cause=e) from e

    def close(self) -> None:
        self._engine.dispose()


class SqlScaleSource(ScaleSource):
    """Grading scale persisted in the ``grade_bands`` table."""

    def __init__(self, engine: Engine | str):
        self._engine = create_db_engine(engine) if isinstance(engine, str) else engine
        Base.metadata.create_all(self._engine)
        self._sessions = sessionmaker(bind=self._engine, expire_on_commit=False)

    def active_bands(self) -> list[GradeBand]:
        try:
            with self._sessions() as session:
                rows = session.scalars(
                    select(GradeBandRow).order_by(GradeBandRow.min_score.desc())
                ).all()
                return [
                    GradeBand(
                        label=row.label,
                        min_score=row.min_score,
                        max_score=row.max_score,
                        grade_point=row.grade_point,
                    )
                    for row in rows
                ]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read grading scale: {e}", cause=e) from e

    def replace_bands(self, bands: Sequence[GradeBand]) -> None:
        try:
            with self._sessions.begin() as session:
                session.execute(delete(GradeBandRow))
                session.add_all(
                    GradeBandRow(
                        label=band.label,
                        min_score=band.min_score,
                        max_score=band.max_score,
                        grade_point=band.grade_point,
                    )
                    for band in bands
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write grading scale: {e}", cause=e) from e
        logger.info("Grading scale replaced with %d bands", len(bands))

    def close(self) -> None:
        self._engine.dispose()
