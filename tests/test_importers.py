"""
Unit tests for mark-sheet importers.

Tests cover:
- Reader selection by extension
- CSV, Excel and JSON parsing
- Header aliases and blank rows
- Error handling for invalid files
"""

import json
from pathlib import Path

import pytest
from openpyxl import Workbook

from gradely.importers import MarkSheetError, create_reader, read_mark_sheet
from gradely.importers.csv_reader import CsvMarkSheetReader
from gradely.importers.excel_reader import ExcelMarkSheetReader
from gradely.importers.factory import get_supported_extensions
from gradely.importers.json_reader import JsonMarkSheetReader


class TestReaderFactory:
    """Tests for the reader factory."""

    def test_supported_extensions(self) -> None:
        """Test that all expected extensions are supported."""
        assert get_supported_extensions() == (".csv", ".json", ".xlsx")

    @pytest.mark.parametrize(
        "name,reader_cls",
        [
            ("marks.csv", CsvMarkSheetReader),
            ("marks.XLSX", ExcelMarkSheetReader),
            ("marks.json", JsonMarkSheetReader),
        ],
    )
    def test_create_reader(self, name: str, reader_cls: type) -> None:
        """Test reader selection by extension, case-insensitively."""
        assert isinstance(create_reader(Path(name)), reader_cls)

    def test_unsupported_format(self) -> None:
        """Test that unsupported formats raise an error."""
        with pytest.raises(MarkSheetError, match="Unsupported file format"):
            create_reader(Path("marks.xls"))


class TestCsvReader:
    """Tests for the CSV reader."""

    def test_read(self, temp_dir: Path) -> None:
        """Test rows become camelCase entries with raw text values."""
        file_path = temp_dir / "marks.csv"
        file_path.write_text(
            "assessmentId,studentId,offeringId,score\n"
            "quiz,007,off-cs101,12.5\n"
            "project,008,off-cs101,abc\n",
            encoding="utf-8",
        )

        entries = read_mark_sheet(file_path)

        assert entries == [
            {"assessmentId": "quiz", "studentId": "007", "offeringId": "off-cs101", "score": "12.5"},
            {"assessmentId": "project", "studentId": "008", "offeringId": "off-cs101", "score": "abc"},
        ]

    def test_header_aliases_and_extra_columns(self, temp_dir: Path) -> None:
        """Test snake_case and spaced headers; unknown columns are dropped."""
        file_path = temp_dir / "marks.csv"
        file_path.write_text(
            "Student ID,Assessment_ID,Offering ID,Mark,Comment\n"
            "s-1,quiz,off-cs101,10,good\n",
            encoding="utf-8",
        )

        (entry,) = read_mark_sheet(file_path)

        assert entry == {
            "studentId": "s-1",
            "assessmentId": "quiz",
            "offeringId": "off-cs101",
            "score": "10",
        }

    def test_blank_rows_skipped(self, temp_dir: Path) -> None:
        """Test rows with only empty cells are ignored."""
        file_path = temp_dir / "marks.csv"
        file_path.write_text(
            "assessmentId,studentId,offeringId,score\n"
            ",,,\n"
            "quiz,s-1,off-cs101,3\n",
            encoding="utf-8",
        )

        assert len(read_mark_sheet(file_path)) == 1

    def test_missing_columns(self, temp_dir: Path) -> None:
        """Test a sheet without the required columns is rejected."""
        file_path = temp_dir / "marks.csv"
        file_path.write_text("studentId,score\ns-1,3\n", encoding="utf-8")

        with pytest.raises(MarkSheetError, match="Missing required columns"):
            read_mark_sheet(file_path)

    def test_header_only(self, temp_dir: Path) -> None:
        """Test a sheet with no data rows is rejected."""
        file_path = temp_dir / "marks.csv"
        file_path.write_text("assessmentId,studentId,offeringId,score\n", encoding="utf-8")

        with pytest.raises(MarkSheetError, match="no entries"):
            read_mark_sheet(file_path)

    def test_empty_file(self, temp_dir: Path) -> None:
        """Test that empty files raise an error."""
        file_path = temp_dir / "marks.csv"
        file_path.write_text("", encoding="utf-8")

        with pytest.raises(MarkSheetError, match="File is empty"):
            read_mark_sheet(file_path)

    def test_file_not_found(self, temp_dir: Path) -> None:
        """Test that missing files raise an error."""
        with pytest.raises(MarkSheetError, match="File does not exist"):
            CsvMarkSheetReader().read(temp_dir / "missing.csv")

    def test_directory(self, temp_dir: Path) -> None:
        """Test that directories are refused."""
        directory = temp_dir / "sheet.csv"
        directory.mkdir()

        with pytest.raises(MarkSheetError, match="Path is not a file"):
            CsvMarkSheetReader().read(directory)

    def test_wrong_reader(self, temp_dir: Path) -> None:
        """Test a reader refuses other formats."""
        file_path = temp_dir / "marks.json"
        file_path.write_text("[]", encoding="utf-8")

        with pytest.raises(MarkSheetError, match="Unsupported file format"):
            CsvMarkSheetReader().read(file_path)

    def test_error_carries_path(self, temp_dir: Path) -> None:
        """Test the error records the offending file."""
        file_path = temp_dir / "missing.csv"

        with pytest.raises(MarkSheetError) as exc_info:
            read_mark_sheet(file_path)

        assert exc_info.value.file_path == str(file_path)


class TestExcelReader:
    """Tests for the Excel reader."""

    def _write(self, path: Path, rows: list[list]) -> Path:
        workbook = Workbook()
        sheet = workbook.active
        for row in rows:
            sheet.append(row)
        workbook.save(path)
        return path

    def test_read(self, temp_dir: Path) -> None:
        """Test rows are read from the first sheet with native cell types."""
        file_path = self._write(
            temp_dir / "marks.xlsx",
            [
                ["assessmentId", "studentId", "offeringId", "score"],
                ["quiz", 1001, "off-cs101", 12],
                ["finalExam", 1002, "off-cs101", 27.5],
            ],
        )

        entries = read_mark_sheet(file_path)

        assert entries == [
            {"assessmentId": "quiz", "studentId": 1001, "offeringId": "off-cs101", "score": 12},
            {"assessmentId": "finalExam", "studentId": 1002, "offeringId": "off-cs101", "score": 27.5},
        ]

    def test_leading_blank_rows(self, temp_dir: Path) -> None:
        """Test the first non-empty row is taken as the header."""
        file_path = self._write(
            temp_dir / "marks.xlsx",
            [
                [None, None],
                ["Assessment ID", "Student ID", "Offering ID", "Score"],
                ["quiz", "s-1", "off-cs101", 4],
            ],
        )

        (entry,) = read_mark_sheet(file_path)

        assert entry["studentId"] == "s-1"
        assert entry["score"] == 4

    def test_empty_workbook(self, temp_dir: Path) -> None:
        """Test that a workbook without data raises an error."""
        file_path = self._write(temp_dir / "marks.xlsx", [])

        with pytest.raises(MarkSheetError, match="no data"):
            read_mark_sheet(file_path)

    def test_corrupted_file(self, temp_dir: Path) -> None:
        """Test that a file that is not a workbook raises an error."""
        file_path = temp_dir / "marks.xlsx"
        file_path.write_bytes(b"not a zip archive")

        with pytest.raises(MarkSheetError):
            read_mark_sheet(file_path)


class TestJsonReader:
    """Tests for the JSON reader."""

    def test_read_wrapped(self, mark_sheet_json: Path) -> None:
        """Test an object with a 'marks' list."""
        entries = read_mark_sheet(mark_sheet_json)

        assert len(entries) == 10
        assert entries[0] == {
            "assessmentId": "assignment",
            "studentId": "s-001",
            "offeringId": "off-cs101",
            "score": 8,
        }

    def test_read_list(self, temp_dir: Path) -> None:
        """Test a bare list with snake_case keys."""
        file_path = temp_dir / "marks.json"
        file_path.write_text(
            json.dumps([{"assessment_id": "quiz", "student_id": "s-1", "offering_id": "o", "score": 1}]),
            encoding="utf-8",
        )

        assert read_mark_sheet(file_path) == [
            {"assessmentId": "quiz", "studentId": "s-1", "offeringId": "o", "score": 1}
        ]

    def test_invalid_json(self, temp_dir: Path) -> None:
        """Test malformed JSON raises an error."""
        file_path = temp_dir / "marks.json"
        file_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(MarkSheetError, match="Invalid JSON"):
            read_mark_sheet(file_path)

    def test_wrong_shape(self, temp_dir: Path) -> None:
        """Test a document without an entry list is rejected."""
        file_path = temp_dir / "marks.json"
        file_path.write_text(json.dumps({"rows": []}), encoding="utf-8")

        with pytest.raises(MarkSheetError, match="Expected a list"):
            read_mark_sheet(file_path)

    def test_non_object_entry(self, temp_dir: Path) -> None:
        """Test every entry must be an object."""
        file_path = temp_dir / "marks.json"
        file_path.write_text(json.dumps([1, 2]), encoding="utf-8")

        with pytest.raises(MarkSheetError, match="Entry 0 must be an object"):
            read_mark_sheet(file_path)

    def test_empty_list(self, temp_dir: Path) -> None:
        """Test an empty list is rejected."""
        file_path = temp_dir / "marks.json"
        file_path.write_text("[]", encoding="utf-8")

        with pytest.raises(MarkSheetError, match="no entries"):
            read_mark_sheet(file_path)
