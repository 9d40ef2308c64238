"""Structure signature computation, comparison and labelling."""

import logging
from typing import Any, Dict, Optional, Sequence
from ..config import TabulatorConfig, resolve_config
from ..models.structure_signature import StructureSignature
from ..path_codec import PathCodec
from ..types import FlatRecord, MalformedPathError, StructureComplexity
from ..utils.cache import SignatureCache
from .rules import DEFAULT_NAMING_RULES, NamingRule

COUNT_SUFFIX = "_Count"
DEFAULT_LABEL = "MixedData"

_COMPLEXITY_LABELS = {
    StructureComplexity.COMPLEX: "ComplexNested",
    StructureComplexity.NESTED: "WithObjects",
    StructureComplexity.ARRAY: "WithArrays",
    StructureComplexity.SIMPLE: DEFAULT_LABEL,
}


class StructureSignatureEngine:
    """
    Computes per-record structure fingerprints.

    Works on flat records (shape recovered from the path keys) as well as on
    nested records (shape taken from the value kinds). Signatures are cached
    by a normalized shape string, so repeated records with identical shape
    are classified once.
    """

    def __init__(self, config: Optional[TabulatorConfig] = None,
                 naming_rules: Optional[Sequence[NamingRule]] = None,
                 cache: Optional[SignatureCache] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the signature engine.

        Args:
            config: Optional TabulatorConfig (similarity threshold, cache size)
            naming_rules: Ordered friendly-name rules; first match wins
            cache: Optional signature cache to share between engines
            logger: Optional logger instance
        """
        self.config = resolve_config(config)
        self.naming_rules = tuple(naming_rules) if naming_rules is not None else DEFAULT_NAMING_RULES
        self.cache = cache if cache is not None else SignatureCache(self.config.cache_size)
        self.logger = logger or logging.getLogger(__name__)
        self.codec = PathCodec()

    def signature(self, record: FlatRecord) -> StructureSignature:
        """
        Compute (or fetch from cache) the signature of a record.

        Args:
            record: Flat or nested record

        Returns:
            StructureSignature for the record
        """
        if not record:
            return StructureSignature()

        return self.cache.get_or_set(self.shape_key(record), lambda: self._compute(record))

    def shape_key(self, record: FlatRecord) -> str:
        """Normalized textual form of everything the signature depends on."""
        tokens = []
        for key in sorted(record):
            value = record[key]
            if isinstance(value, dict):
                token = "o"
            elif isinstance(value, list):
                token = f"a{len(value)}"
            elif key.endswith(COUNT_SUFFIX) and self._is_count(value):
                token = f"c{value}"
            else:
                token = "s"
            tokens.append(f"{key}:{token}")
        return "|".join(tokens)

    def similarity(self, sig_a: StructureSignature, sig_b: StructureSignature) -> float:
        """Jaccard index over the combined property-name vocabulary."""
        return sig_a.similarity(sig_b)

    def are_similar(self, sig_a: StructureSignature, sig_b: StructureSignature,
                    threshold: Optional[float] = None) -> bool:
        """Check similarity against the configured threshold."""
        if threshold is None:
            threshold = self.config.similarity_threshold
        return self.similarity(sig_a, sig_b) >= threshold

    def friendly_name(self, signature: StructureSignature) -> str:
        """
        Human-readable label for a signature.

        The first matching naming rule wins; without a match the label
        reflects the signature's complexity.
        """
        for rule in self.naming_rules:
            if rule.matches(signature):
                return rule.label

        return _COMPLEXITY_LABELS[signature.complexity]

    def label(self, record: FlatRecord) -> str:
        """Friendly name of a record's signature."""
        return self.friendly_name(self.signature(record))

    def _compute(self, record: FlatRecord) -> StructureSignature:
        objects = set()
        arrays: Dict[str, int] = {}
        simples = set()
        counts: Dict[str, int] = {}

        for key, value in record.items():
            try:
                segments = self.codec.decode(key)
            except MalformedPathError:
                simples.add(key)
                continue

            first = segments[0]
            if first.is_array_index:
                arrays[first.name] = max(arrays.get(first.name, 0), first.index + 1)
            elif len(segments) > 1 or isinstance(value, dict):
                objects.add(first.name)
            elif isinstance(value, list):
                arrays[first.name] = max(arrays.get(first.name, 0), len(value))
            elif first.name.endswith(COUNT_SUFFIX) and self._is_count(value):
                counts[first.name] = value
            else:
                simples.add(first.name)

        # A count column only describes an array when the array's sample is present too.
        for key, count in counts.items():
            name = key[:-len(COUNT_SUFFIX)]
            if name in arrays:
                arrays[name] = max(arrays[name], count)
            else:
                simples.add(key)

        objects -= set(arrays)
        simples -= objects | set(arrays)

        return StructureSignature(
            object_properties=frozenset(objects),
            array_properties=arrays,
            simple_properties=frozenset(simples)
        )

    @staticmethod
    def _is_count(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0
