"""
CSV mark-sheet reader using pandas.

Cells are read as text so that ids keep their leading zeros and
malformed scores reach validation unchanged.
"""

from pathlib import Path
from typing import Any, ClassVar

import pandas as pd

from gradely.importers.base import MarkSheetError, MarkSheetReader


class CsvMarkSheetReader(MarkSheetReader):
    """Reads marks from comma-separated files with a header row."""

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".csv",)

    def read(self, file_path: Path) -> list[dict[str, Any]]:
        self._validate_file(file_path)

        try:
            df = pd.read_csv(file_path, dtype=str, keep_default_na=False, skipinitialspace=True)
        except pd.errors.EmptyDataError as e:
            raise MarkSheetError("File is empty", file_path, cause=e) from e
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            raise MarkSheetError(f"Malformed CSV: {e}", file_path, cause=e) from e

        return self._normalise_rows(df.columns, df.itertuples(index=False, name=None), file_path)
