"""
JSON Tabulator - Bidirectional JSON to spreadsheet conversion.

Flattens nested JSON records into tabular rows, groups records of similar
structure into separate sheets and rebuilds the nested values from rows.
"""

__version__ = "1.0.0"

from .config import TabulatorConfig
from .flattener import JSONFlattener
from .engines import ClusteringEngine, StructureReconstructor, StructureSignatureEngine
from .models import PathSegment, RecordGroup, SheetData, StructureSignature
from .path_codec import PathCodec
from .tabulator import JSONTabulator
from .types import (
    ArrayIndexConflictError,
    ExportResult,
    MalformedPathError,
    ReconstructResult,
    RestoreResult,
    TabulateResult,
    TabulationError
)

__all__ = [
    "JSONTabulator",
    "TabulatorConfig",
    "JSONFlattener",
    "StructureReconstructor",
    "StructureSignatureEngine",
    "ClusteringEngine",
    "PathCodec",
    "PathSegment",
    "StructureSignature",
    "RecordGroup",
    "SheetData",
    "TabulateResult",
    "ReconstructResult",
    "ExportResult",
    "RestoreResult",
    "TabulationError",
    "MalformedPathError",
    "ArrayIndexConflictError",
]
