"""Validation utilities for documents, headers and flat records."""

import json
from typing import Any, List, Sequence, Set
from ..path_codec import PathCodec
from ..types import ErrorType, MalformedPathError, ValidationError, ValidationResult


def _error(error_type: ErrorType, message: str, location: str) -> ValidationError:
    return ValidationError(type=error_type, message=message, location=location)


class ValidationUtils:
    """Utility class for validating inputs at the tabulator boundaries."""

    @staticmethod
    def validate_json_string(json_string: str) -> ValidationResult:
        """
        Validate JSON string syntax and structure.

        Args:
            json_string: JSON string to validate

        Returns:
            ValidationResult with validation details
        """
        errors = []
        warnings = []

        if not json_string or not json_string.strip():
            errors.append(_error(ErrorType.SYNTAX, "JSON string is empty", "input"))
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            errors.append(_error(ErrorType.SYNTAX, f"Invalid JSON syntax: {e.msg}", f"line {e.lineno}, column {e.colno}"))
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        if not isinstance(data, (dict, list)):
            errors.append(_error(ErrorType.STRUCTURE, f"Root element must be dict or list, got {type(data).__name__}", "root"))
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        max_depth = ValidationUtils._calculate_max_depth(data)
        if max_depth > 20:
            warnings.append(f"Deep nesting detected (depth: {max_depth}). Flat records will be very wide.")

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    @staticmethod
    def validate_headers(headers: Sequence[Any]) -> ValidationResult:
        """
        Validate a header row read back from a spreadsheet.

        Empty and duplicate headers are errors; headers that do not decode as
        paths are errors too, since they cannot be reconstructed.

        Args:
            headers: Header values in column order

        Returns:
            ValidationResult with validation details
        """
        errors = []
        warnings = []

        if not headers:
            errors.append(_error(ErrorType.STRUCTURE, "Headers cannot be empty", "headers"))
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        seen: Set[str] = set()
        for column, header in enumerate(headers, start=1):
            if header is None or not str(header).strip():
                errors.append(_error(ErrorType.STRUCTURE, "Empty or whitespace header found", f"column {column}"))
                continue

            header = str(header)
            if header in seen:
                errors.append(_error(ErrorType.STRUCTURE, f"Duplicate header found: '{header}'", f"column {column}"))
            seen.add(header)

            try:
                PathCodec.decode(header)
            except MalformedPathError as e:
                errors.append(_error(ErrorType.PATH, str(e), f"column {column}"))

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    @staticmethod
    def validate_records(records: Any) -> ValidationResult:
        """
        Validate that records are flat mappings keyed by strings.

        Args:
            records: Candidate list of flat records

        Returns:
            ValidationResult with validation details
        """
        errors = []
        warnings = []

        if not isinstance(records, list):
            errors.append(_error(ErrorType.STRUCTURE, f"Records must be a list, got {type(records).__name__}", "records"))
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        for position, record in enumerate(records):
            if not isinstance(record, dict):
                errors.append(_error(ErrorType.STRUCTURE, f"Record must be a dict, got {type(record).__name__}", f"record {position}"))
                continue

            bad_keys: List[Any] = [key for key in record if not isinstance(key, str)]
            if bad_keys:
                errors.append(_error(ErrorType.STRUCTURE, f"Record keys must be strings: {bad_keys!r}", f"record {position}"))

            if not record:
                warnings.append(f"Record {position} is empty")

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    @staticmethod
    def _calculate_max_depth(data: Any, current_depth: int = 0) -> int:
        """Calculate maximum nesting depth."""
        if not isinstance(data, (dict, list)):
            return current_depth

        max_child_depth = current_depth
        children = data.values() if isinstance(data, dict) else data

        for child in children:
            child_depth = ValidationUtils._calculate_max_depth(child, current_depth + 1)
            max_child_depth = max(max_child_depth, child_depth)

        return max_child_depth
