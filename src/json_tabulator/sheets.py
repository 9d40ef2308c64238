"""Planning of worksheets from grouped flat records."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from .config import TabulatorConfig, resolve_config
from .models.record_group import RecordGroup
from .models.sheet_data import INVALID_SHEET_NAME_CHARACTERS, MAX_SHEET_NAME_LENGTH, SheetData
from .types import FlatRecord


def sanitize_sheet_name(name: str, default: str = "Data",
                        max_length: int = MAX_SHEET_NAME_LENGTH) -> str:
    """
    Make a string usable as a worksheet name.

    Characters spreadsheets reject are replaced with ``_`` and the result is
    truncated to ``max_length``. Blank names fall back to ``default``.
    """
    cleaned = "".join("_" if char in INVALID_SHEET_NAME_CHARACTERS else char for char in name or "")
    cleaned = cleaned.strip().strip("'")
    if not cleaned:
        cleaned = default
    return cleaned[:max_length]


def build_group_summary(groups: Sequence[RecordGroup]) -> Dict[str, Any]:
    """Summarize a clustering run for the summary worksheet."""
    sizes = {group.name: len(group) for group in groups}
    largest = max(groups, key=len).name if groups else None

    return {
        "TotalGroups": len(groups),
        "TotalRecords": sum(sizes.values()),
        "LargestGroup": largest,
        "GroupSizes": sizes,
        "GeneratedAt": datetime.now().isoformat(timespec="seconds")
    }


class SheetPlanner:
    """
    Lays out record groups as worksheets.

    Every group becomes one sheet. Columns follow the batch's canonical header
    order restricted to the keys the group uses, so sheets stay consistent
    with each other.
    """

    def __init__(self, config: Optional[TabulatorConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = resolve_config(config)
        self.logger = logger or logging.getLogger(__name__)

    def plan(self, groups: Sequence[RecordGroup], headers: Sequence[str]) -> List[SheetData]:
        """
        Build one SheetData per group.

        Args:
            groups: Record groups, largest first
            headers: Canonical header order of the whole batch

        Returns:
            Sheets in group order with unique, valid names
        """
        sheets = []
        used: set = set()

        for group in groups:
            name = self._unique_name(group.name, used)
            sheets.append(SheetData(
                name=name,
                headers=self._headers_for(group.records, headers),
                records=group.records
            ))
            if name != group.name:
                self.logger.debug(f"Sheet for group '{group.name}' named '{name}'")

        self.logger.info(f"Planned {len(sheets)} sheets")
        return sheets

    def plan_flat(self, records: List[FlatRecord], headers: Sequence[str]) -> List[SheetData]:
        """Lay out all records on a single default sheet."""
        name = sanitize_sheet_name(self.config.default_sheet_name,
                                   max_length=self.config.max_sheet_name_length)
        return [SheetData(name=name, headers=list(headers), records=records)]

    @staticmethod
    def _headers_for(records: Sequence[FlatRecord], headers: Sequence[str]) -> List[str]:
        present = set()
        extra: List[str] = []
        known = set(headers)

        for record in records:
            for key in record:
                if key not in present:
                    present.add(key)
                    if key not in known:
                        extra.append(key)

        return [header for header in headers if header in present] + extra

    def _unique_name(self, name: str, used: set) -> str:
        limit = self.config.max_sheet_name_length
        base = sanitize_sheet_name(name, self.config.default_sheet_name, limit)

        candidate, suffix = base, 2
        # Spreadsheet sheet names compare case-insensitively
        while candidate.lower() in used:
            tail = f"_{suffix}"
            candidate = base[:limit - len(tail)] + tail
            suffix += 1

        used.add(candidate.lower())
        return candidate
