"""
Excel mark-sheet reader using openpyxl.

Reads the first worksheet of an .xlsx workbook; the first non-empty
row is the header.
"""

from pathlib import Path
from typing import Any, ClassVar
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from gradely.importers.base import MarkSheetError, MarkSheetReader


class ExcelMarkSheetReader(MarkSheetReader):
    """Reads marks from the first sheet of an Excel workbook."""

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".xlsx",)

    def read(self, file_path: Path) -> list[dict[str, Any]]:
        self._validate_file(file_path)

        try:
            workbook = load_workbook(file_path, read_only=True, data_only=True)
        except (InvalidFileException, BadZipFile) as e:
            raise MarkSheetError(
                "File is not a valid Excel document or is corrupted", file_path, cause=e
            ) from e
        except (OSError, KeyError, ValueError) as e:
            raise MarkSheetError(f"Cannot open workbook: {e}", file_path, cause=e) from e

        try:
            sheet = workbook.worksheets[0]
            rows = [
                row
                for row in sheet.iter_rows(values_only=True)
                if not all(self._is_blank(cell) for cell in row)
            ]
        finally:
            workbook.close()

        if not rows:
            raise MarkSheetError("Spreadsheet contains no data", file_path)

        return self._normalise_rows(rows[0], rows[1:], file_path)
