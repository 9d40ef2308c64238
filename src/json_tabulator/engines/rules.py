"""Ordered rule tables used to label and sub-group records."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from ..models.structure_signature import StructureSignature
from ..types import FlatRecord, GroupingStrategyKind, PropertyKind

UNKNOWN_LABEL = "Unknown"


@dataclass(frozen=True)
class NamingRule:
    """
    Maps a property-name pattern to a human-readable group label.

    Patterns are matched as case-insensitive substrings. ``property_kind``
    restricts which part of a signature is searched.
    """

    field_pattern: Union[str, Tuple[str, ...]]
    label: str
    property_kind: PropertyKind = PropertyKind.ANY

    def __post_init__(self):
        """Validate rule after initialization."""
        if not self.patterns or not all(self.patterns):
            raise ValueError("field_pattern cannot be empty")
        if not self.label:
            raise ValueError("label cannot be empty")

    @property
    def patterns(self) -> Tuple[str, ...]:
        if isinstance(self.field_pattern, str):
            return (self.field_pattern,)
        return tuple(self.field_pattern)

    def matches_name(self, name: str) -> bool:
        lowered = name.lower()
        return any(pattern.lower() in lowered for pattern in self.patterns)

    def matches(self, signature: StructureSignature) -> bool:
        """Check whether any property of the configured kind matches."""
        if self.property_kind == PropertyKind.OBJECT:
            names = signature.object_properties
        elif self.property_kind == PropertyKind.ARRAY:
            names = signature.array_properties.keys()
        elif self.property_kind == PropertyKind.SIMPLE:
            names = signature.simple_properties
        else:
            names = signature.property_names

        return any(self.matches_name(name) for name in names)


DEFAULT_NAMING_RULES: Tuple[NamingRule, ...] = (
    NamingRule("address", "WithAddress", PropertyKind.OBJECT),
    NamingRule(("user", "customer"), "WithUser", PropertyKind.OBJECT),
    NamingRule("orders", "WithOrders", PropertyKind.ARRAY),
    NamingRule("items", "WithItems", PropertyKind.ARRAY),
    NamingRule("metadata", "WithMetadata", PropertyKind.OBJECT),
)


class GroupingStrategy(ABC):
    """A sub-grouping strategy: derives one bucket label per record."""

    kind: GroupingStrategyKind

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def label_for(self, record: FlatRecord) -> str:
        """Bucket label for a record."""
        pass

    def partition(self, records: Sequence[FlatRecord]) -> Dict[str, List[FlatRecord]]:
        """Split records into buckets, keeping first-seen bucket order."""
        buckets: Dict[str, List[FlatRecord]] = {}
        for record in records:
            buckets.setdefault(self.label_for(record), []).append(record)
        return buckets

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class FieldValueStrategy(GroupingStrategy):
    """Groups records by the value of the first present field among candidates."""

    kind = GroupingStrategyKind.FIELD_VALUE

    def __init__(self, field_names: Sequence[str], name: Optional[str] = None):
        if not field_names:
            raise ValueError("field_names cannot be empty")
        super().__init__(name or field_names[0])
        self.field_names = tuple(field_names)

    def label_for(self, record: FlatRecord) -> str:
        value = self.find_value(record)
        if value is None or not str(value).strip():
            return UNKNOWN_LABEL
        return str(value)

    def find_value(self, record: FlatRecord) -> Optional[Any]:
        """Exact key match first, then a case-insensitive match, per candidate."""
        for field_name in self.field_names:
            value = record.get(field_name)
            if value is not None:
                return value

            lowered = field_name.lower()
            for key, candidate in record.items():
                if key.lower() == lowered and candidate is not None:
                    return candidate

        return None


class KeyPresenceStrategy(GroupingStrategy):
    """Groups records by the first rule whose pattern appears in any key."""

    kind = GroupingStrategyKind.KEY_PRESENCE

    def __init__(self, rules: Sequence[NamingRule], default_label: str = "Standard",
                 name: str = "key-presence"):
        super().__init__(name)
        self.rules = tuple(rules)
        self.default_label = default_label

    def label_for(self, record: FlatRecord) -> str:
        for rule in self.rules:
            if any(rule.matches_name(key) for key in record):
                return rule.label
        return self.default_label


def default_grouping_strategies() -> List[GroupingStrategy]:
    """Sub-grouping strategies in their fixed priority order."""
    return [
        FieldValueStrategy(("type", "documentType", "category", "kind"), name="type"),
        FieldValueStrategy(("status", "state", "condition"), name="status"),
        KeyPresenceStrategy((
            NamingRule("order", "WithOrders"),
            NamingRule("address", "WithAddress"),
            NamingRule("user", "WithUser"),
        )),
    ]
