"""
Store factory module.

Selects the store implementation from a database URL: ``memory://``
gives volatile in-memory stores, anything else is a SQLAlchemy URL.
"""

from gradely.store.base import MarkStore, ScaleSource
from gradely.store.database import SqlMarkStore, SqlScaleSource, create_db_engine
from gradely.store.memory import InMemoryMarkStore, InMemoryScaleSource

MEMORY_URL = "memory://"


def create_stores(url: str) -> tuple[MarkStore, ScaleSource]:
    """
    Create the mark store and grading-scale source for a database URL.

    Both SQL stores share one engine, so an in-memory SQLite URL gives
    them the same database.

    Raises:
        StoreError: If the database cannot be opened.
    """
    if url == MEMORY_URL:
        return InMemoryMarkStore(), InMemoryScaleSource()

    engine = create_db_engine(url)
    return SqlMarkStore(engine), SqlScaleSource(engine)
