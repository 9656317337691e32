"""
Base classes for mark-sheet import.

Defines the abstract interface that all mark-sheet readers must implement,
ensuring consistent column handling across file formats.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Iterable, Mapping


class MarkSheetError(Exception):
    """
    Raised when a mark sheet cannot be read.

    Contains detailed information about the failure cause.
    """

    def __init__(self, message: str, file_path: str | Path, cause: Exception | None = None):
        self.file_path = str(file_path)
        self.cause = cause
        super().__init__(f"Failed to read '{file_path}': {message}")


class MarkSheetReader(ABC):
    """
    Abstract base class for mark-sheet readers.

    Readers return raw row mappings keyed by the camelCase submission
    fields; values are passed through untouched so that every entry is
    validated, and reported, individually at submission time.
    """

    # Class variable: each subclass must override with supported extensions
    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = ()

    REQUIRED_COLUMNS: ClassVar[tuple[str, ...]] = (
        "assessmentId",
        "studentId",
        "offeringId",
        "score",
    )

    # Accepted spellings of each column header
    COLUMN_ALIASES: ClassVar[dict[str, str]] = {
        "assessment_id": "assessmentId",
        "assessmentid": "assessmentId",
        "student_id": "studentId",
        "studentid": "studentId",
        "offering_id": "offeringId",
        "offeringid": "offeringId",
        "score": "score",
        "mark": "score",
        "marks": "score",
    }

    @classmethod
    def supports(cls, file_path: Path) -> bool:
        """
        Check if this reader supports the given file.

        Args:
            file_path: Path to the file to check.

        Returns:
            True if this reader can handle the file format.
        """
        return file_path.suffix.lower() in cls.SUPPORTED_EXTENSIONS

    @abstractmethod
    def read(self, file_path: Path) -> list[dict[str, Any]]:
        """
        Read submission entries from a mark sheet.

        Args:
            file_path: Path to the mark sheet.

        Returns:
            One mapping per non-empty row.

        Raises:
            MarkSheetError: If the sheet cannot be read.
        """
        ...

    def _validate_file(self, file_path: Path) -> None:
        """
        Validate that the file exists and is supported.

        Raises:
            MarkSheetError: If file doesn't exist or isn't supported.
        """
        if not file_path.exists():
            raise MarkSheetError("File does not exist", file_path)

        if not file_path.is_file():
            raise MarkSheetError("Path is not a file", file_path)

        if not self.supports(file_path):
            raise MarkSheetError(
                f"Unsupported file format. Expected one of: {self.SUPPORTED_EXTENSIONS}",
                file_path,
            )

    def _canonical_column(self, header: Any) -> str:
        """Map a header cell onto its canonical column name."""
        text = "" if header is None else str(header).strip()
        return self.COLUMN_ALIASES.get(text.lower().replace(" ", "_"), text)

    def _normalise_rows(
        self, headers: Iterable[Any], rows: Iterable[Iterable[Any]], file_path: Path
    ) -> list[dict[str, Any]]:
        """
        Pair row cells with canonical headers and drop blank rows.

        Raises:
            MarkSheetError: If required columns are missing or no rows remain.
        """
        columns = [self._canonical_column(h) for h in headers]
        missing = [c for c in self.REQUIRED_COLUMNS if c not in columns]
        if missing:
            raise MarkSheetError(f"Missing required columns: {missing}", file_path)

        entries: list[dict[str, Any]] = []
        for row in rows:
            cells = list(row)
            if all(self._is_blank(cell) for cell in cells):
                continue
            entry = {
                column: cells[i] if i < len(cells) else None
                for i, column in enumerate(columns)
                if column in self.REQUIRED_COLUMNS
            }
            entries.append(entry)

        if not entries:
            raise MarkSheetError("Mark sheet contains no entries", file_path)
        return entries

    def _entries_from_mappings(
        self, items: Iterable[Mapping[str, Any]], file_path: Path
    ) -> list[dict[str, Any]]:
        """Canonicalise keys of mapping-shaped rows."""
        entries: list[dict[str, Any]] = []
        for item in items:
            entries.append({self._canonical_column(k): v for k, v in item.items()})
        if not entries:
            raise MarkSheetError("Mark sheet contains no entries", file_path)
        return entries

    @staticmethod
    def _is_blank(cell: Any) -> bool:
        return cell is None or (isinstance(cell, str) and not cell.strip())
