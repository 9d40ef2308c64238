"""JSON parser with validation, the input boundary of the tabulator."""

import json
import logging
from typing import Any, Optional
from .error_handler import ErrorHandler


class JSONParser:
    """
    JSON parser with input validation.

    The tabulator core never reads raw text itself; documents enter through
    this parser and leave it as plain Python values.
    """

    def __init__(self, error_handler: Optional[ErrorHandler] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the JSON parser.

        Args:
            error_handler: Optional ErrorHandler instance
            logger: Optional logger instance
        """
        self.error_handler = error_handler or ErrorHandler()
        self.logger = logger or logging.getLogger(__name__)

    def parse(self, json_string: str) -> Any:
        """
        Parse and validate a JSON document.

        Args:
            json_string: JSON string to parse

        Returns:
            Parsed document (dict or list)

        Raises:
            ValueError: If JSON is invalid or its root is not an object or array
        """
        validation_result = self.error_handler.validate_input(json_string)
        if not validation_result.is_valid:
            error_messages = [error.message for error in validation_result.errors]
            raise ValueError(f"Invalid JSON input: {'; '.join(error_messages)}")

        for warning in validation_result.warnings:
            self.logger.warning(warning)

        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON parsing failed: {e.msg} at line {e.lineno}, column {e.colno}")

        self.logger.info(f"Parsed JSON document with root type: {type(data).__name__}")
        return data
