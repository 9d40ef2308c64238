"""Error handling implementation for the JSON Tabulator."""

import logging
import os
import pathlib
from typing import Optional
from .types import (
    ErrorResponse,
    ErrorType,
    TabulationError,
    ValidationError,
    ValidationResult
)
from .utils.validation import ValidationUtils


# error type -> (recoverable, suggested action)
_RECOVERY = {
    ErrorType.PATH: (
        True,
        "Skip the affected record, or rename properties whose names contain "
        "'.', '[' or ']' before flattening."
    ),
    ErrorType.CONFLICT: (
        True,
        "Skip the affected record. Its columns use the same position both as an "
        "object and as an array; check the header row."
    ),
    ErrorType.SYNTAX: (False, "Fix the JSON syntax of the input and retry."),
    ErrorType.STRUCTURE: (False, "Check that every sheet has a unique, non-empty header row."),
    ErrorType.CONFIGURATION: (False, "Fix the configuration values and retry."),
    ErrorType.FILESYSTEM: (False, "Check that the file exists, is a valid workbook and is writable."),
}


class ErrorHandler:
    """
    Error handler for JSON Tabulator operations.

    Validates inputs at the boundaries and turns tabulation errors into
    recovery suggestions for the integration layer.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the error handler.

        Args:
            logger: Optional logger instance for error reporting
        """
        self.logger = logger or logging.getLogger(__name__)

    def validate_input(self, input_data: str) -> ValidationResult:
        """
        Validate input JSON string.

        Args:
            input_data: JSON string to validate

        Returns:
            ValidationResult with validation details
        """
        try:
            return ValidationUtils.validate_json_string(input_data)
        except (TypeError, RecursionError) as e:
            self.logger.error(f"Unexpected error during input validation: {e}")
            return ValidationResult(
                is_valid=False,
                errors=[ValidationError(
                    type=ErrorType.SYNTAX,
                    message=f"Validation failed with unexpected error: {str(e)}",
                    location="input"
                )],
                warnings=[]
            )

    def handle_tabulation_error(self, error: TabulationError) -> ErrorResponse:
        """
        Map a tabulation error to a recovery suggestion.

        Path and conflict errors are fatal for the affected record only, so
        the batch can continue without it. The offending path is returned as
        the partial result.
        """
        self.logger.error(f"Tabulation error: {error.error_type.value} - {error}")

        can_recover, action = _RECOVERY.get(
            error.error_type,
            (False, "Unknown error type. Please check logs and retry.")
        )
        return ErrorResponse(
            can_recover=can_recover,
            suggested_action=action,
            partial_results=error.context.get("path") if can_recover else None
        )

    def validate_output_path(self, path: str) -> ValidationResult:
        """
        Validate the target file path of an export.

        Args:
            path: Output file path

        Returns:
            ValidationResult with validation details
        """
        errors = []
        warnings = []

        if not path:
            errors.append(ValidationError(
                type=ErrorType.FILESYSTEM,
                message="Output path cannot be empty",
                location="path"
            ))
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        try:
            resolved_path = pathlib.Path(path).resolve()

            if resolved_path.exists() and resolved_path.is_dir():
                errors.append(ValidationError(
                    type=ErrorType.FILESYSTEM,
                    message="Output path is a directory",
                    location="path"
                ))

            parent = resolved_path.parent
            if parent.exists() and not os.access(parent, os.W_OK):
                errors.append(ValidationError(
                    type=ErrorType.FILESYSTEM,
                    message="Output directory is not writable",
                    location="path"
                ))

            if resolved_path.suffix.lower() not in (".xlsx", ".xlsm"):
                warnings.append(f"Output file '{resolved_path.name}' does not have an .xlsx extension")

        except (OSError, ValueError) as e:
            errors.append(ValidationError(
                type=ErrorType.FILESYSTEM,
                message=f"Invalid output path: {str(e)}",
                location="path"
            ))

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )
