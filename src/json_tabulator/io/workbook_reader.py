"""Workbook reader that turns sheets back into flat records."""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence
from openpyxl import load_workbook
from ..models.sheet_data import SheetData
from ..type_detector import TypeDetector
from ..types import ErrorType, FlatRecord, TabulationError
from ..utils.validation import ValidationUtils
from .workbook_writer import SUMMARY_SHEET_NAME


class WorkbookReader:
    """
    Reads tabulated workbooks.

    The first row of every sheet is the header row of flat keys. Each later
    non-empty row becomes one flat record; blank cells are left out of the
    record and text cells go through the type detector.
    """

    def __init__(self, type_detector: Optional[TypeDetector] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the workbook reader.

        Args:
            type_detector: Optional detector for typed cell values
            logger: Optional logger instance
        """
        self.type_detector = type_detector or TypeDetector()
        self.logger = logger or logging.getLogger(__name__)

    def read(self, input_path: str) -> List[SheetData]:
        """
        Read every data sheet of a workbook.

        Args:
            input_path: Path of the .xlsx file

        Returns:
            One SheetData per data sheet, in workbook order

        Raises:
            TabulationError: If the file cannot be opened or a header row is invalid
        """
        path = Path(input_path)
        if not path.is_file():
            raise TabulationError(
                f"Workbook not found: {input_path}",
                ErrorType.FILESYSTEM,
                context={"input_path": input_path}
            )

        try:
            workbook = load_workbook(path, read_only=True, data_only=True)
        except Exception as e:
            raise TabulationError(
                f"Failed to open workbook: {str(e)}",
                ErrorType.FILESYSTEM,
                context={"input_path": input_path}
            )

        try:
            sheets = []
            for worksheet in workbook.worksheets:
                if worksheet.title == SUMMARY_SHEET_NAME:
                    continue
                sheet = self._read_sheet(worksheet.title, worksheet.iter_rows(values_only=True))
                if sheet is not None:
                    sheets.append(sheet)
        finally:
            workbook.close()

        self.logger.info(
            f"Read {sum(sheet.row_count for sheet in sheets)} records from {len(sheets)} sheets"
        )
        return sheets

    def _read_sheet(self, name: str, rows) -> Optional[SheetData]:
        header_row = next(rows, None)
        if header_row is None:
            self.logger.debug(f"Skipping empty sheet '{name}'")
            return None

        headers = self._trim_trailing_blanks(header_row)
        if not headers:
            self.logger.debug(f"Skipping sheet '{name}' without headers")
            return None

        validation = ValidationUtils.validate_headers(headers)
        if not validation.is_valid:
            messages = [f"{error.location}: {error.message}" for error in validation.errors]
            raise TabulationError(
                f"Invalid header row in sheet '{name}': {'; '.join(messages)}",
                ErrorType.STRUCTURE,
                context={"sheet": name}
            )

        headers = [str(header) for header in headers]
        records: List[FlatRecord] = []

        for row in rows:
            record = self._to_record(headers, row)
            if record:
                records.append(record)

        return SheetData(name=name, headers=headers, records=records)

    def _to_record(self, headers: List[str], row: Sequence[Any]) -> FlatRecord:
        record: FlatRecord = {}
        for header, raw in zip(headers, row):
            value = self.type_detector.detect(raw)
            if value is not None:
                record[header] = value
        return record

    @staticmethod
    def _trim_trailing_blanks(row: Sequence[Any]) -> List[Any]:
        values = list(row)
        while values and (values[-1] is None or not str(values[-1]).strip()):
            values.pop()
        return values
