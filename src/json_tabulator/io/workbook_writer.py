"""Workbook writer for tabulated output."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Sequence
from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet
from ..config import SUMMARY_SHEET_NAME
from ..models.sheet_data import SheetData
from ..types import ErrorType, TabulationError

# Spreadsheet cells hold at most this many characters
MAX_CELL_LENGTH = 32767


def to_cell_value(value: Any) -> Any:
    """
    Convert a flat record value into something a cell can hold.

    Embedded objects and arrays are stored as JSON text, which the reader
    turns back into values.
    """
    if isinstance(value, (dict, list)):
        value = json.dumps(value, ensure_ascii=False)

    if isinstance(value, str):
        value = ILLEGAL_CHARACTERS_RE.sub("", value)
        if len(value) > MAX_CELL_LENGTH:
            raise ValueError(f"Cell text of {len(value)} characters exceeds the {MAX_CELL_LENGTH} limit")

    return value


class WorkbookWriter:
    """
    Writes planned sheets into an .xlsx workbook.

    Each sheet gets a bold, frozen header row with an auto filter. An
    optional summary sheet lists the group sizes of the run.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the workbook writer.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    def write(self, sheets: Sequence[SheetData], output_path: str,
              summary: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Write sheets to a workbook file.

        Args:
            sheets: Sheets to write, in order
            output_path: Target .xlsx path
            summary: Optional group summary written as a trailing sheet

        Returns:
            Dictionary with write operation results

        Raises:
            TabulationError: If the workbook cannot be built or saved
        """
        try:
            path = Path(output_path)
            self._ensure_directory_exists(path.parent)

            workbook = Workbook()
            workbook.remove(workbook.active)

            for sheet in sheets:
                self._write_sheet(workbook.create_sheet(title=sheet.name), sheet)

            if not sheets:
                workbook.create_sheet(title="Data")

            if summary is not None:
                self._write_summary(workbook.create_sheet(title=SUMMARY_SHEET_NAME), summary)

            workbook.save(path)

            results = {
                "success": True,
                "path": str(path.absolute()),
                "sheets_written": [sheet.name for sheet in sheets],
                "rows_written": sum(sheet.row_count for sheet in sheets),
                "size": path.stat().st_size
            }

            self.logger.info(f"Wrote {len(sheets)} sheets to {output_path}")
            return results

        except TabulationError:
            raise
        except Exception as e:
            raise TabulationError(
                f"Failed to write workbook: {str(e)}",
                ErrorType.FILESYSTEM,
                context={"output_path": output_path, "sheet_count": len(sheets)}
            )

    def _write_sheet(self, worksheet: Worksheet, sheet: SheetData) -> None:
        """Write the header row and one row per record."""
        bold = Font(bold=True)

        for column, header in enumerate(sheet.headers, start=1):
            cell = worksheet.cell(row=1, column=column, value=header)
            cell.font = bold

        for row, values in enumerate(sheet.rows(), start=2):
            for column, value in enumerate(values, start=1):
                if value is None:
                    continue
                self._set_cell(worksheet, row, column, value)

        if sheet.headers:
            worksheet.freeze_panes = "A2"
            last_column = get_column_letter(len(sheet.headers))
            worksheet.auto_filter.ref = f"A1:{last_column}{max(sheet.row_count + 1, 1)}"

            for column, header in enumerate(sheet.headers, start=1):
                width = min(max(len(header) + 2, 10), 60)
                worksheet.column_dimensions[get_column_letter(column)].width = width

    def _write_summary(self, worksheet: Worksheet, summary: Dict[str, Any]) -> None:
        """Write the summary as key/value rows, one row per group size."""
        bold = Font(bold=True)
        worksheet.append(["Key", "Value"])
        for cell in worksheet[1]:
            cell.font = bold

        for key, value in summary.items():
            if isinstance(value, dict):
                for name, size in value.items():
                    worksheet.append([f"{key}.{name}", size])
            else:
                worksheet.append([key, value])

    @staticmethod
    def _set_cell(worksheet: Worksheet, row: int, column: int, value: Any) -> None:
        cell = worksheet.cell(row=row, column=column, value=to_cell_value(value))
        # Text starting with '=' is data, not a formula
        if cell.data_type == "f":
            cell.data_type = "s"

    def _ensure_directory_exists(self, directory_path: Path) -> None:
        """
        Ensure that a directory exists, creating it if necessary.

        Args:
            directory_path: Path to directory

        Raises:
            TabulationError: If directory creation fails
        """
        try:
            directory_path.mkdir(parents=True, exist_ok=True)

            if not os.access(directory_path, os.W_OK):
                raise TabulationError(
                    f"Directory {directory_path} is not writable",
                    ErrorType.FILESYSTEM
                )

        except OSError as e:
            raise TabulationError(
                f"Failed to create directory {directory_path}: {str(e)}",
                ErrorType.FILESYSTEM
            )
