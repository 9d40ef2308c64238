"""Core processing engines."""

from .structure_reconstructor import StructureReconstructor
from .signature_engine import StructureSignatureEngine
from .clustering_engine import ClusteringEngine
from .rules import NamingRule, FieldValueStrategy, KeyPresenceStrategy

__all__ = [
    "StructureReconstructor",
    "StructureSignatureEngine",
    "ClusteringEngine",
    "NamingRule",
    "FieldValueStrategy",
    "KeyPresenceStrategy",
]
