"""Record group model produced by the clustering engine."""

from dataclasses import dataclass, field
from typing import Any, Dict, List
from ..types import FlatRecord, GroupingStrategyKind


@dataclass
class RecordGroup:
    """
    A named bucket of flat records from one clustering run.

    ``label`` is the heuristic bucket label (``WithUser``), ``name`` the
    final key after renaming by size (``WithUser_(2_Records)``).
    """

    label: str
    name: str
    records: List[FlatRecord] = field(default_factory=list)
    strategy: GroupingStrategyKind = GroupingStrategyKind.FRIENDLY_NAME

    def __post_init__(self):
        """Validate group after initialization."""
        if not self.label:
            raise ValueError("label cannot be empty")

        if not self.name:
            raise ValueError("name cannot be empty")

    def __len__(self) -> int:
        return len(self.records)

    def to_dict(self) -> Dict[str, Any]:
        """Convert group summary to dictionary for JSON serialization."""
        return {
            "label": self.label,
            "name": self.name,
            "recordCount": len(self.records),
            "strategy": self.strategy.value
        }
