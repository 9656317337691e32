"""
Mark-Sheet Import Module.

Provides a unified interface for reading bulk score entries from:
- CSV (.csv)
- Excel (.xlsx)
- JSON (.json)
"""

from gradely.importers.base import MarkSheetError, MarkSheetReader
from gradely.importers.factory import create_reader, read_mark_sheet

__all__ = [
    "MarkSheetError",
    "MarkSheetReader",
    "create_reader",
    "read_mark_sheet",
]
