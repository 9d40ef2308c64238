"""Grouping of heterogeneous record sets into homogeneous structure groups."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple
from ..config import TabulatorConfig, resolve_config
from ..models.record_group import RecordGroup
from ..types import ClusteringEngineInterface, FlatRecord, GroupingStrategyKind
from .rules import GroupingStrategy, default_grouping_strategies
from .signature_engine import StructureSignatureEngine

CATCH_ALL_LABEL = "All Records"


class ClusteringEngine(ClusteringEngineInterface):
    """
    Clusters records by structure.

    A run buckets records by the friendly name of their signature. When that
    collapses a large batch into a single bucket, the sub-grouping strategies
    are tried in order and the first one producing several buckets without a
    dominant one replaces the primary result; otherwise everything lands in a
    catch-all bucket. Buckets are finally renamed by descending size.
    """

    def __init__(self, config: Optional[TabulatorConfig] = None,
                 signature_engine: Optional[StructureSignatureEngine] = None,
                 strategies: Optional[Sequence[GroupingStrategy]] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the clustering engine.

        Args:
            config: Optional TabulatorConfig (collapse threshold, max dominance)
            signature_engine: Optional signature engine used for the primary pass
            strategies: Ordered sub-grouping strategies
            logger: Optional logger instance
        """
        self.config = resolve_config(config)
        self.logger = logger or logging.getLogger(__name__)
        self.signature_engine = signature_engine or StructureSignatureEngine(self.config, logger=self.logger)
        self.strategies = list(strategies) if strategies is not None else default_grouping_strategies()

    def group(self, records: List[FlatRecord]) -> Dict[str, List[FlatRecord]]:
        """
        Partition records into named groups.

        Args:
            records: Flat records to group

        Returns:
            Mapping of group name to records, largest group first
        """
        return {group.name: group.records for group in self.cluster(records)}

    def cluster(self, records: List[FlatRecord]) -> List[RecordGroup]:
        """
        Run one clustering pass.

        Args:
            records: Flat records to group

        Returns:
            RecordGroup list ordered by descending size
        """
        if not records:
            return []

        buckets: Dict[str, List[FlatRecord]] = {}
        for record in records:
            buckets.setdefault(self.signature_engine.label(record), []).append(record)
        kind = GroupingStrategyKind.FRIENDLY_NAME

        self.logger.debug(f"Primary pass produced {len(buckets)} buckets for {len(records)} records")

        if len(buckets) == 1 and len(records) > self.config.collapse_record_threshold:
            sub_groups = self._try_sub_groups(records)
            if sub_groups is not None:
                buckets, kind = sub_groups
            else:
                self.logger.debug("No sub-grouping strategy qualified, using catch-all bucket")
                buckets = {CATCH_ALL_LABEL: list(records)}
                kind = GroupingStrategyKind.CATCH_ALL

        groups = self._rename(buckets, kind)
        self.logger.info(f"Grouped {len(records)} records into {len(groups)} groups")
        return groups

    def _try_sub_groups(self, records: List[FlatRecord]
                        ) -> Optional[Tuple[Dict[str, List[FlatRecord]], GroupingStrategyKind]]:
        limit = self.config.sub_group_max_dominance * len(records)

        for strategy in self.strategies:
            partition = strategy.partition(records)
            largest = max(len(bucket) for bucket in partition.values())

            if len(partition) > 1 and largest < limit:
                self.logger.debug(f"Accepted sub-grouping {strategy!r}: {len(partition)} buckets, largest {largest}")
                return partition, strategy.kind

            self.logger.debug(f"Rejected sub-grouping {strategy!r}: {len(partition)} buckets, largest {largest}")

        return None

    @staticmethod
    def _rename(buckets: Dict[str, List[FlatRecord]], kind: GroupingStrategyKind) -> List[RecordGroup]:
        groups = []
        used = set()

        # sorted() is stable, so equal-sized buckets keep first-seen order
        for label, bucket in sorted(buckets.items(), key=lambda item: -len(item[1])):
            count = len(bucket)
            name = f"{label}_({count}_Records)" if count > 1 else f"{label}_SingleRecord"

            candidate, suffix = name, 2
            while candidate in used:
                candidate = f"{name}_{suffix}"
                suffix += 1
            used.add(candidate)

            groups.append(RecordGroup(label=label, name=candidate, records=bucket, strategy=kind))

        return groups
