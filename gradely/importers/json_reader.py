"""
JSON mark-sheet reader.

Accepts either a list of entries or an object with a ``marks`` list.
"""

import json
from pathlib import Path
from typing import Any, ClassVar

from gradely.importers.base import MarkSheetError, MarkSheetReader


class JsonMarkSheetReader(MarkSheetReader):
    """Reads marks from JSON documents."""

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".json",)

    def read(self, file_path: Path) -> list[dict[str, Any]]:
        self._validate_file(file_path)

        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise MarkSheetError(f"Invalid JSON: {e}", file_path, cause=e) from e

        if isinstance(data, dict):
            data = data.get("marks")
        if not isinstance(data, list):
            raise MarkSheetError("Expected a list of entries or an object with 'marks'", file_path)

        for i, item in enumerate(data):
            if not isinstance(item, dict):
                raise MarkSheetError(f"Entry {i} must be an object", file_path)

        return self._entries_from_mappings(data, file_path)
