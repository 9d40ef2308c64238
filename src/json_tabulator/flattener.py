"""Flattening of nested value trees into flat, spreadsheet-ready records."""

import copy
import logging
from concurrent.futures import Executor
from typing import Any, Dict, List, Optional, Tuple
from .config import TabulatorConfig, resolve_config
from .path_codec import PathCodec
from .types import (
    DataStructure,
    FlatRecord,
    FlattenerInterface,
    FlattenResult,
    MalformedPathError,
    TabulationError
)


class JSONFlattener(FlattenerInterface):
    """
    Flattener for JSON-like value trees.

    Nested objects become dotted paths, small arrays are expanded element by
    element and large arrays are summarized by a ``<path>_Count`` column plus
    a short sample of their leading elements. The first record of a batch
    fixes the canonical column order; later records only append columns they
    introduce.
    """

    def __init__(self, config: Optional[TabulatorConfig] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the flattener.

        Args:
            config: Optional TabulatorConfig (array thresholds, container keys)
            logger: Optional logger instance
        """
        self.config = resolve_config(config)
        self.logger = logger or logging.getLogger(__name__)
        self.codec = PathCodec()

    def flatten(self, value: Any, base_path: str = "",
                headers: Optional[List[str]] = None) -> Tuple[FlatRecord, List[str]]:
        """
        Flatten one value tree.

        Args:
            value: Parsed JSON value
            base_path: Path prefix for every produced key
            headers: Ordered header accumulator shared across a batch

        Returns:
            Tuple of (flat_record, headers); the record's unseen keys are
            appended to ``headers`` after the record is complete

        Raises:
            MalformedPathError: If a property name cannot be encoded in a path
            ValueError: If a non-object root is given without a base path
        """
        if headers is None:
            headers = []

        record: FlatRecord = {}

        if isinstance(value, dict):
            if not value and base_path:
                record[base_path] = {}
            else:
                self._flatten_object(value, base_path, record)
        elif base_path:
            self._flatten_value(value, base_path, record)
        else:
            raise ValueError(
                f"Cannot flatten a root {type(value).__name__} without a base path"
            )

        self.merge_headers(headers, record)
        return record, headers

    def flatten_batch(self, values: List[Any], executor: Optional[Executor] = None,
                      skip_invalid: bool = False) -> FlattenResult:
        """
        Flatten a batch of independent records.

        Records are flattened independently (on ``executor`` when given) and
        the header list is computed afterwards as a union in record order,
        so the result does not depend on scheduling. Records that are not
        objects become empty rows.

        Args:
            values: Record values to flatten
            executor: Optional executor for parallel flattening
            skip_invalid: Skip records that fail instead of raising

        Returns:
            FlattenResult with records, ordered headers and skipped-record errors
        """
        if executor is not None and len(values) > 1:
            outcomes = list(executor.map(self._flatten_safely, values))
        else:
            outcomes = [self._flatten_safely(value) for value in values]

        records: List[FlatRecord] = []
        headers: List[str] = []
        errors: List[str] = []

        for position, (record, error) in enumerate(outcomes):
            if error is not None:
                if not skip_invalid:
                    raise error
                message = f"Record {position}: {error}"
                self.logger.warning(f"Skipping record that failed to flatten: {message}")
                errors.append(message)
                continue

            records.append(record)
            self.merge_headers(headers, record)

        self.logger.info(f"Flattened {len(records)} records into {len(headers)} columns")
        return FlattenResult(records=records, headers=headers, errors=errors)

    def extract_records(self, document: Any) -> Tuple[List[Any], DataStructure]:
        """
        Locate the record list inside a parsed document.

        A root list is the record list. A root object holding one of the
        configured container keys with a list value yields that list (keys are
        checked in configuration order). Any other object is a single record.

        Args:
            document: Parsed JSON document

        Returns:
            Tuple of (records, DataStructure)
        """
        if isinstance(document, list):
            return document, DataStructure.RECORD_LIST

        if isinstance(document, dict):
            for container in self.config.container_keys:
                if isinstance(document.get(container), list):
                    self.logger.debug(f"Using container key '{container}' as record source")
                    return document[container], DataStructure.CONTAINER
            return [document], DataStructure.SINGLE_OBJECT

        raise ValueError(f"Unsupported root data type: {type(document).__name__}")

    @staticmethod
    def merge_headers(headers: List[str], record: FlatRecord) -> List[str]:
        """Append the record's keys not yet present in ``headers``, in order."""
        seen = set(headers)
        for key in record:
            if key not in seen:
                headers.append(key)
                seen.add(key)
        return headers

    def _flatten_safely(self, value: Any) -> Tuple[Optional[FlatRecord], Optional[Exception]]:
        if not isinstance(value, dict):
            self.logger.warning(
                f"Record of type {type(value).__name__} is not an object; emitting an empty row"
            )
            return {}, None
        try:
            record, _ = self.flatten(value, headers=[])
            return record, None
        except (TabulationError, ValueError) as e:
            return None, e

    def _flatten_object(self, obj: Dict[str, Any], base_path: str, record: FlatRecord) -> None:
        for name, child in obj.items():
            self._flatten_value(child, self.codec.join(base_path, name), record)

    def _flatten_value(self, value: Any, path: str, record: FlatRecord) -> None:
        if isinstance(value, dict):
            if value:
                self._flatten_object(value, path, record)
            else:
                self._store(record, path, {})
        elif isinstance(value, list):
            if value:
                self._flatten_array(value, path, record)
            else:
                self._store(record, path, [])
        else:
            self._store(record, path, value)

    def _flatten_array(self, array: List[Any], path: str, record: FlatRecord) -> None:
        if len(array) <= self.config.small_array_threshold:
            elements = array
        else:
            self._store(record, self.codec.count_key(path), len(array))
            elements = array[:self.config.array_sample_size]

        for position, element in enumerate(elements):
            element_path = self.codec.index(path, position)
            if isinstance(element, dict):
                if element:
                    self._flatten_object(element, element_path, record)
                else:
                    self._store(record, element_path, {})
            elif isinstance(element, list):
                # Arrays of arrays are embedded whole at the element path.
                self._store(record, element_path, copy.deepcopy(element))
            else:
                self._store(record, element_path, element)

    @staticmethod
    def _store(record: FlatRecord, path: str, value: Any) -> None:
        # A property named like a synthetic count column lands on the same key
        if path in record:
            raise MalformedPathError(
                f"Flattened key '{path}' is produced twice; a property name collides "
                f"with a summarized array's count column",
                path=path,
                segment=path.rsplit(".", 1)[-1]
            )
        record[path] = value
