"""Workbook I/O for the JSON Tabulator."""

from .workbook_reader import WorkbookReader
from .workbook_writer import SUMMARY_SHEET_NAME, WorkbookWriter

__all__ = ["WorkbookReader", "WorkbookWriter", "SUMMARY_SHEET_NAME"]
