"""
Mark-sheet reader factory module.

Provides a factory function to select the appropriate reader based on
file extension, and a convenience function for direct import.
"""

from pathlib import Path
from typing import Any

from gradely.importers.base import MarkSheetError, MarkSheetReader
from gradely.importers.csv_reader import CsvMarkSheetReader
from gradely.importers.excel_reader import ExcelMarkSheetReader
from gradely.importers.json_reader import JsonMarkSheetReader

# Registry of all available readers
_READERS: tuple[type[MarkSheetReader], ...] = (
    CsvMarkSheetReader,
    ExcelMarkSheetReader,
    JsonMarkSheetReader,
)


def get_supported_extensions() -> tuple[str, ...]:
    """
    Get all supported file extensions across all readers.

    Returns:
        Tuple of supported extensions (e.g., ('.csv', '.json', '.xlsx')).
    """
    extensions: list[str] = []
    for reader_cls in _READERS:
        extensions.extend(reader_cls.SUPPORTED_EXTENSIONS)
    return tuple(sorted(set(extensions)))


def create_reader(file_path: Path | str) -> MarkSheetReader:
    """
    Create the appropriate reader for a given file.

    Raises:
        MarkSheetError: If the file format is not supported.
    """
    path = Path(file_path)
    extension = path.suffix.lower()

    for reader_cls in _READERS:
        if extension in reader_cls.SUPPORTED_EXTENSIONS:
            return reader_cls()

    supported = get_supported_extensions()
    raise MarkSheetError(
        f"Unsupported file format '{extension}'. Supported formats: {supported}",
        path,
    )


def read_mark_sheet(file_path: Path | str) -> list[dict[str, Any]]:
    """
    Read submission entries from a mark sheet in one step.

    Raises:
        MarkSheetError: If reading fails.
    """
    path = Path(file_path)
    return create_reader(path).read(path)
