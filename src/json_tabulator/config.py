"""Configuration for the JSON Tabulator."""

import json
import logging
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
from .types import ErrorHandlingStrategy

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER_KEYS = ("Documents", "Items", "Data", "Records", "Results", "Entities")

# Written after the data sheets of a grouped export and skipped on read
SUMMARY_SHEET_NAME = "Groups Summary"

# Restored records are tagged with their sheet under this key
SHEET_NAME_KEY = "_sheetName"


def _to_snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _to_camel_case(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


@dataclass
class TabulatorConfig:
    """
    Flat configuration object shared by all tabulator components.

    Thresholds are fixed for the lifetime of an engine instance, so a single
    run always applies the same truncation and grouping policy.
    """

    small_array_threshold: int = 10
    array_sample_size: int = 3
    sub_group_max_dominance: float = 0.8
    similarity_threshold: float = 0.7
    collapse_record_threshold: int = 10
    default_sheet_name: str = "Data"
    max_sheet_name_length: int = 31
    container_keys: Tuple[str, ...] = DEFAULT_CONTAINER_KEYS
    cache_size: int = 1000
    error_handling: ErrorHandlingStrategy = ErrorHandlingStrategy.THROW_IMMEDIATELY
    parse_json_strings: bool = True
    trim_whitespace: bool = True
    create_summary_sheet: bool = True
    include_sheet_metadata: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.error_handling, str):
            self.error_handling = ErrorHandlingStrategy(self.error_handling)
        self.container_keys = tuple(self.container_keys)
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values."""
        if self.small_array_threshold < 0:
            raise ValueError("small_array_threshold must be non-negative")

        if self.array_sample_size < 0:
            raise ValueError("array_sample_size must be non-negative")

        if not 0.0 < self.sub_group_max_dominance <= 1.0:
            raise ValueError("sub_group_max_dominance must be in (0, 1]")

        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be in [0, 1]")

        if self.collapse_record_threshold < 0:
            raise ValueError("collapse_record_threshold must be non-negative")

        if not self.default_sheet_name:
            raise ValueError("default_sheet_name cannot be empty")

        if self.default_sheet_name.strip().lower() == SUMMARY_SHEET_NAME.lower():
            raise ValueError(f"default_sheet_name cannot be the reserved name '{SUMMARY_SHEET_NAME}'")

        if not 1 <= self.max_sheet_name_length <= 31:
            raise ValueError("max_sheet_name_length must be between 1 and 31")

        if self.cache_size <= 0:
            raise ValueError("cache_size must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TabulatorConfig':
        """
        Create a configuration from a flat mapping.

        Accepts the camelCase option names (``smallArrayThreshold``) as well
        as the snake_case attribute names. Unknown keys are logged and ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}

        for key, value in data.items():
            name = key if key in known else _to_snake_case(key)
            if name not in known:
                logger.warning(f"Ignoring unknown configuration option: {key}")
                continue
            kwargs[name] = value

        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'TabulatorConfig':
        """Load a configuration from a JSON file."""
        config_path = Path(path)
        try:
            data = json.loads(config_path.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid configuration file {config_path}: {e.msg}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a JSON object")

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a camelCase dictionary."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, ErrorHandlingStrategy):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            result[_to_camel_case(f.name)] = value
        return result

    def replace(self, **changes: Any) -> 'TabulatorConfig':
        """Return a copy with the given attributes changed."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(changes)
        return TabulatorConfig(**values)


def resolve_config(config: Optional[Union[TabulatorConfig, Dict[str, Any]]]) -> TabulatorConfig:
    """Accept a config object, a flat mapping or None."""
    if config is None:
        return TabulatorConfig()
    if isinstance(config, TabulatorConfig):
        return config
    return TabulatorConfig.from_dict(config)
