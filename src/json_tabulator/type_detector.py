"""Scalar type inference for cell text read back from spreadsheets."""

import json
import logging
import re
from enum import Enum
from typing import Any, Optional
from .config import TabulatorConfig, resolve_config
from .utils.cache import TypeCache

_INTEGER_PATTERN = re.compile(r"^[+-]?(0|[1-9]\d*)$")
_FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+(\.\d*)?[eE][+-]?\d+)$")


class ScalarKind(Enum):
    """Kinds of scalar the detector can infer from text."""
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    JSON = "json"
    STRING = "string"


class TypeDetector:
    """
    Infers typed scalars from cell text.

    Recognizes booleans, integers (without leading zeros), floats and, when
    enabled, JSON object/array text, which is returned as an embedded value.
    The inferred kind of every distinct text is remembered in a TypeCache.
    """

    def __init__(self, config: Optional[TabulatorConfig] = None,
                 cache: Optional[TypeCache] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the type detector.

        Args:
            config: Optional TabulatorConfig (JSON parsing, whitespace trimming)
            cache: Optional type cache to share between detectors
            logger: Optional logger instance
        """
        self.config = resolve_config(config)
        self.cache = cache if cache is not None else TypeCache(self.config.cache_size)
        self.logger = logger or logging.getLogger(__name__)

    def detect(self, value: Any) -> Any:
        """
        Convert a raw cell value into a typed scalar.

        Non-string values are returned unchanged; blank text becomes None.

        Args:
            value: Raw cell value

        Returns:
            Typed scalar or embedded value
        """
        if not isinstance(value, str):
            return value

        text = value.strip() if self.config.trim_whitespace else value
        if not text.strip():
            return None

        kind = self.cache.get(text)
        if kind is None:
            kind = self.infer_kind(text)
            self.cache.set(text, kind)

        return self._convert(text, kind)

    def infer_kind(self, text: str) -> ScalarKind:
        """Determine which scalar kind a piece of text represents."""
        lowered = text.lower()
        if lowered in ("true", "false"):
            return ScalarKind.BOOLEAN

        if _INTEGER_PATTERN.match(text):
            return ScalarKind.INTEGER

        if _FLOAT_PATTERN.match(text):
            return ScalarKind.FLOAT

        if self.config.parse_json_strings and text[0] in "{[":
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                return ScalarKind.STRING
            if isinstance(parsed, (dict, list)):
                return ScalarKind.JSON

        return ScalarKind.STRING

    def clear_cache(self) -> None:
        self.cache.clear()

    def _convert(self, text: str, kind: ScalarKind) -> Any:
        try:
            if kind == ScalarKind.BOOLEAN:
                return text.lower() == "true"
            if kind == ScalarKind.INTEGER:
                return int(text)
            if kind == ScalarKind.FLOAT:
                return float(text)
            if kind == ScalarKind.JSON:
                return json.loads(text)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError subclass
            self.logger.debug(f"Cached kind {kind.value} no longer converts {text!r}: {e}")
            self.cache.remove(text)

        return text
