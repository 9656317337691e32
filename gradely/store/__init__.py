"""
Mark Storage Module.

Provides the keyed mark-upsert contract and grading-scale lookup:
- In-memory stores (``memory://``)
- SQLAlchemy stores (SQLite, PostgreSQL)
"""

from gradely.store.base import MarkStore, ScaleSource, StoreError
from gradely.store.database import SqlMarkStore, SqlScaleSource
from gradely.store.factory import MEMORY_URL, create_stores
from gradely.store.memory import InMemoryMarkStore, InMemoryScaleSource

__all__ = [
    "MEMORY_URL",
    "InMemoryMarkStore",
    "InMemoryScaleSource",
    "MarkStore",
    "ScaleSource",
    "SqlMarkStore",
    "SqlScaleSource",
    "StoreError",
    "create_stores",
]
