"""Structure signature model: a compact fingerprint of one record's shape."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet
from ..types import StructureComplexity


@dataclass(frozen=True)
class StructureSignature:
    """
    Read-only summary of a record's shape.

    Property names are classified by the kind of value they held before
    flattening: nested objects, arrays (with element counts) and everything
    else. Two signatures are compared by the names they cover, never by the
    record values.
    """

    object_properties: FrozenSet[str] = frozenset()
    array_properties: Dict[str, int] = field(default_factory=dict)
    simple_properties: FrozenSet[str] = frozenset()

    def __post_init__(self):
        """Validate signature after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate signature integrity."""
        for name, count in self.array_properties.items():
            if count < 0:
                raise ValueError(f"array count for '{name}' must be non-negative")

        overlap = self.object_properties & set(self.array_properties)
        if overlap:
            raise ValueError(f"properties cannot be both object and array: {sorted(overlap)}")

    @property
    def total_complexity(self) -> int:
        """Number of nested-object plus array properties."""
        return len(self.object_properties) + len(self.array_properties)

    @property
    def complexity(self) -> StructureComplexity:
        """Coarse complexity level of the record."""
        if self.object_properties and self.array_properties:
            return StructureComplexity.COMPLEX
        if self.object_properties:
            return StructureComplexity.NESTED
        if self.array_properties:
            return StructureComplexity.ARRAY
        return StructureComplexity.SIMPLE

    @property
    def property_names(self) -> FrozenSet[str]:
        """Combined property-name vocabulary of the signature."""
        return self.object_properties | frozenset(self.array_properties) | self.simple_properties

    def signature_key(self) -> str:
        """Normalized text form of the nested part of the shape."""
        parts = []

        if self.object_properties:
            parts.append(f"Objects[{','.join(sorted(self.object_properties))}]")

        if self.array_properties:
            array_parts = [f"{name}({count})" for name, count in sorted(self.array_properties.items())]
            parts.append(f"Arrays[{','.join(array_parts)}]")

        if not parts:
            return "SimpleRecord"

        return "_".join(parts)

    def similarity(self, other: 'StructureSignature') -> float:
        """
        Jaccard index over the property names of both signatures.

        Two signatures without any properties are considered identical.
        """
        if other is None:
            return 0.0

        this_names = self.property_names
        other_names = other.property_names
        union = this_names | other_names

        if not union:
            return 1.0

        return len(this_names & other_names) / len(union)

    def to_dict(self) -> Dict[str, Any]:
        """Convert signature to dictionary for JSON serialization."""
        return {
            "objectProperties": sorted(self.object_properties),
            "arrayProperties": dict(sorted(self.array_properties.items())),
            "simpleProperties": sorted(self.simple_properties),
            "complexity": self.complexity.value,
            "signatureKey": self.signature_key()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StructureSignature':
        """Create StructureSignature from dictionary."""
        return cls(
            object_properties=frozenset(data.get("objectProperties", [])),
            array_properties=dict(data.get("arrayProperties", {})),
            simple_properties=frozenset(data.get("simpleProperties", []))
        )
