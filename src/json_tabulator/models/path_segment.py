"""Path segment model used by the path codec."""

from dataclasses import dataclass
from typing import Any, Dict

RESERVED_CHARACTERS = ".[]"


@dataclass(frozen=True)
class PathSegment:
    """
    One step of a flattened path.

    An object segment names a property; an array-index segment names the
    array property and the element index inside it, so ``orders[2]`` is a
    single segment.
    """

    name: str
    is_array_index: bool = False
    index: int = 0

    def __post_init__(self):
        """Validate segment after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate segment integrity."""
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("name cannot be empty")

        if any(char in self.name for char in RESERVED_CHARACTERS):
            raise ValueError(f"name cannot contain any of '{RESERVED_CHARACTERS}': {self.name!r}")

        if self.index < 0:
            raise ValueError("index must be non-negative")

        if not self.is_array_index and self.index != 0:
            raise ValueError("index is only allowed on array-index segments")

    def __str__(self) -> str:
        return f"{self.name}[{self.index}]" if self.is_array_index else self.name

    def to_dict(self) -> Dict[str, Any]:
        """Convert segment to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "isArrayIndex": self.is_array_index,
            "index": self.index
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PathSegment':
        """Create PathSegment from dictionary."""
        return cls(
            name=data["name"],
            is_array_index=data.get("isArrayIndex", False),
            index=data.get("index", 0)
        )
