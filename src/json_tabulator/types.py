"""Core type definitions for the JSON Tabulator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# A single row of tabular output: path string -> scalar (or embedded value).
FlatRecord = Dict[str, Any]


class DataStructure(Enum):
    """Enumeration of document layouts accepted as record sources."""
    RECORD_LIST = "record-list"
    CONTAINER = "container"
    SINGLE_OBJECT = "single-object"


class PropertyKind(Enum):
    """Kind of value a top-level property held before flattening."""
    OBJECT = "object"
    ARRAY = "array"
    SIMPLE = "simple"
    ANY = "any"


class StructureComplexity(Enum):
    """Structure complexity levels."""
    SIMPLE = "simple"
    NESTED = "nested"
    ARRAY = "array"
    COMPLEX = "complex"


class GroupingStrategyKind(Enum):
    """Which clustering pass produced a group."""
    FRIENDLY_NAME = "friendly-name"
    FIELD_VALUE = "field-value"
    KEY_PRESENCE = "key-presence"
    CATCH_ALL = "catch-all"


class ErrorType(Enum):
    """Enumeration of error types."""
    SYNTAX = "syntax"
    STRUCTURE = "structure"
    PATH = "path"
    CONFLICT = "conflict"
    CONFIGURATION = "configuration"
    FILESYSTEM = "filesystem"


class ErrorHandlingStrategy(Enum):
    """What the facade does with a record that fails to flatten or rebuild."""
    THROW_IMMEDIATELY = "throw"
    SKIP_INVALID_DATA = "skip"


@dataclass
class ValidationError:
    """Validation error details."""
    type: ErrorType
    message: str
    location: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of input validation."""
    is_valid: bool
    errors: List[ValidationError]
    warnings: List[str]


@dataclass
class ErrorResponse:
    """Response for error handling."""
    can_recover: bool
    suggested_action: str
    partial_results: Optional[Any] = None


@dataclass
class FlattenResult:
    """Flat records of one batch plus their canonical header order."""
    records: List[FlatRecord]
    headers: List[str]
    errors: List[str] = field(default_factory=list)


@dataclass
class TabulateResult:
    """Result of turning a document into a sheet plan."""
    success: bool
    sheets: List['SheetData']
    record_count: int = 0
    group_count: int = 0
    errors: Optional[List[str]] = None
    groups: List['RecordGroup'] = field(default_factory=list)


@dataclass
class ReconstructResult:
    """Result of rebuilding value trees from flat records."""
    success: bool
    values: List[Dict[str, Any]]
    errors: Optional[List[str]] = None


@dataclass
class ExportResult:
    """Result of an export operation."""
    success: bool
    output_path: str
    sheet_count: int
    record_count: int
    errors: Optional[List[str]] = None


@dataclass
class RestoreResult:
    """Result of a restore operation."""
    success: bool
    json_string: str
    record_count: int = 0
    errors: Optional[List[str]] = None


class TabulationError(Exception):
    """Base exception for flattening and reconstruction errors."""

    def __init__(self, message: str, error_type: ErrorType, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_type = error_type
        self.context = context or {}


class MalformedPathError(TabulationError):
    """A flat key cannot be decoded into (or built from) valid path segments."""

    def __init__(self, message: str, path: str, segment: Optional[str] = None):
        super().__init__(message, ErrorType.PATH, {"path": path, "segment": segment})
        self.path = path
        self.segment = segment


class ArrayIndexConflictError(TabulationError):
    """The same path position is claimed by incompatible container kinds."""

    def __init__(self, message: str, path: str, segment: Optional[str] = None):
        super().__init__(message, ErrorType.CONFLICT, {"path": path, "segment": segment})
        self.path = path
        self.segment = segment


# Abstract base classes for interfaces

class FlattenerInterface(ABC):
    """Abstract interface for the value-tree flattener."""

    @abstractmethod
    def flatten(self, value: Any, base_path: str = "",
                headers: Optional[List[str]] = None) -> Tuple[FlatRecord, List[str]]:
        """Flatten one value tree into a flat record."""
        pass


class ReconstructorInterface(ABC):
    """Abstract interface for rebuilding value trees."""

    @abstractmethod
    def reconstruct(self, flat_records: List[FlatRecord]) -> List[Dict[str, Any]]:
        """Rebuild nested values from flat records."""
        pass


class ClusteringEngineInterface(ABC):
    """Abstract interface for structure-based grouping."""

    @abstractmethod
    def group(self, records: List[FlatRecord]) -> Dict[str, List[FlatRecord]]:
        """Partition records into named groups."""
        pass


class TabulatorInterface(ABC):
    """Abstract interface for the JSON Tabulator."""

    @abstractmethod
    async def export(self, json_string: str, output_path: str) -> ExportResult:
        """Convert a JSON document into a workbook."""
        pass

    @abstractmethod
    async def restore(self, input_path: str) -> RestoreResult:
        """Convert a workbook back into a JSON document."""
        pass
