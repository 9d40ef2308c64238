"""Sheet data model handed to spreadsheet writers."""

from dataclasses import dataclass, field
from typing import Any, Dict, List
from ..types import FlatRecord

INVALID_SHEET_NAME_CHARACTERS = "/\\?*[]:"
MAX_SHEET_NAME_LENGTH = 31


@dataclass
class SheetData:
    """
    One worksheet worth of tabular data.

    Headers are ordered; records may lack some headers, in which case the
    writer leaves the cell blank.
    """

    name: str
    headers: List[str]
    records: List[FlatRecord] = field(default_factory=list)

    def __post_init__(self):
        """Validate sheet after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate that the sheet name is usable by spreadsheet writers."""
        if not self.name:
            raise ValueError("name cannot be empty")

        if len(self.name) > MAX_SHEET_NAME_LENGTH:
            raise ValueError(f"name cannot be longer than {MAX_SHEET_NAME_LENGTH} characters")

        invalid = [char for char in self.name if char in INVALID_SHEET_NAME_CHARACTERS]
        if invalid:
            raise ValueError(f"name contains invalid characters: {''.join(invalid)}")

        if len(set(self.headers)) != len(self.headers):
            raise ValueError("headers must be unique")

    @property
    def row_count(self) -> int:
        """Number of data rows (excluding the header row)."""
        return len(self.records)

    def rows(self) -> List[List[Any]]:
        """Records laid out as rows in header order; missing cells are None."""
        return [[record.get(header) for header in self.headers] for record in self.records]

    def to_dict(self) -> Dict[str, Any]:
        """Convert sheet to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "headers": list(self.headers),
            "records": [dict(record) for record in self.records]
        }
