"""Reconstruction of nested value trees from flat records."""

import copy
import logging
from typing import Any, Dict, List, Optional
from ..models.path_segment import PathSegment
from ..path_codec import PathCodec
from ..types import ArrayIndexConflictError, FlatRecord, ReconstructorInterface


class StructureReconstructor(ReconstructorInterface):
    """
    Inverse of the flattener.

    Every key of a flat record is decoded into segments and walked left to
    right: intermediate segments create or reuse objects and lists, the last
    segment receives the value. Lists grow with ``{}`` placeholders when the
    target is a container and ``None`` when it is a scalar.

    Large arrays were summarized when flattened, so this is only an exact
    inverse for records whose arrays were all expanded in full.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the structure reconstructor.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.codec = PathCodec()

    def reconstruct(self, flat_records: List[FlatRecord]) -> List[Dict[str, Any]]:
        """
        Rebuild nested values for a list of flat records.

        Args:
            flat_records: Flat records, e.g. rows read back from a spreadsheet

        Returns:
            One nested dictionary per input record

        Raises:
            MalformedPathError: If a key cannot be decoded
            ArrayIndexConflictError: If a path position is used inconsistently
        """
        if not flat_records:
            return []

        values = [self.reconstruct_record(record) for record in flat_records]
        self.logger.debug(f"Reconstructed {len(values)} records")
        return values

    def reconstruct_record(self, record: FlatRecord) -> Dict[str, Any]:
        """Rebuild one nested dictionary from a flat record."""
        nested: Dict[str, Any] = {}

        for path, value in record.items():
            segments = self.codec.decode(path)
            self._set_nested_value(nested, path, segments, value)

        return nested

    def _set_nested_value(self, target: Dict[str, Any], path: str,
                          segments: List[PathSegment], value: Any) -> None:
        current = target

        for segment in segments[:-1]:
            if segment.is_array_index:
                items = self._ensure_list(current, segment, path)
                self._grow(items, segment.index, placeholder_factory=dict)
                slot = items[segment.index]
                if not isinstance(slot, dict):
                    if slot is not None:
                        raise ArrayIndexConflictError(
                            f"Element {segment} of {path!r} holds a scalar but is used as an object",
                            path=path,
                            segment=str(segment)
                        )
                    slot = items[segment.index] = {}
                current = slot
            else:
                child = current.get(segment.name)
                if child is None:
                    child = current[segment.name] = {}
                elif not isinstance(child, dict):
                    kind = "an array" if isinstance(child, list) else "a scalar"
                    raise ArrayIndexConflictError(
                        f"Property {segment.name!r} of {path!r} is {kind} but is used as an object",
                        path=path,
                        segment=str(segment)
                    )
                current = child

        last = segments[-1]
        if last.is_array_index:
            items = self._ensure_list(current, last, path)
            self._grow(items, last.index, placeholder_factory=lambda: None)
            existing = items[last.index]
            if self._is_occupied(existing):
                raise ArrayIndexConflictError(
                    f"Element {last} of {path!r} already holds nested values",
                    path=path,
                    segment=str(last)
                )
            items[last.index] = self._detach(value)
        else:
            existing = current.get(last.name)
            if self._is_occupied(existing):
                raise ArrayIndexConflictError(
                    f"Property {last.name!r} of {path!r} already holds nested values",
                    path=path,
                    segment=str(last)
                )
            current[last.name] = self._detach(value)

    def _ensure_list(self, container: Dict[str, Any], segment: PathSegment, path: str) -> List[Any]:
        existing = container.get(segment.name)
        if existing is None:
            existing = container[segment.name] = []
        elif not isinstance(existing, list):
            kind = "an object" if isinstance(existing, dict) else "a scalar"
            raise ArrayIndexConflictError(
                f"Property {segment.name!r} of {path!r} is {kind} but is indexed as an array",
                path=path,
                segment=str(segment)
            )
        return existing

    @staticmethod
    def _grow(items: List[Any], index: int, placeholder_factory) -> None:
        while len(items) <= index:
            items.append(placeholder_factory())

    @staticmethod
    def _detach(value: Any) -> Any:
        return copy.deepcopy(value) if isinstance(value, (dict, list)) else value

    @staticmethod
    def _is_occupied(existing: Any) -> bool:
        """Containers that already received values cannot be overwritten."""
        return isinstance(existing, (dict, list)) and len(existing) > 0
