"""Data models for the JSON Tabulator."""

from .path_segment import PathSegment
from .structure_signature import StructureSignature
from .record_group import RecordGroup
from .sheet_data import SheetData

__all__ = ["PathSegment", "StructureSignature", "RecordGroup", "SheetData"]
