"""Performance profiler for JSON Tabulator operations."""

import time
import psutil
import logging
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class PerformanceMetrics:
    """Performance metrics for one tabulation operation."""
    operation_name: str
    start_time: float
    end_time: float
    duration: float
    records_in: int
    groups_out: int
    memory_peak_mb: float
    memory_start_mb: float
    memory_end_mb: float
    records_per_second: float


@dataclass
class ProfilingSession:
    """State of the operation currently being measured."""
    operation_name: str
    started_at: float
    memory_start_mb: float
    memory_peak_mb: float
    records_in: int = 0
    groups_out: int = 0


class PerformanceProfiler:
    """
    Profiler for flatten, cluster and workbook operations.

    Records wall time, process memory and record throughput per operation.
    One profiler measures one operation at a time; use a separate instance
    per concurrent run.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.metrics_history: List[PerformanceMetrics] = []
        self.session: Optional[ProfilingSession] = None

    @property
    def groups_out(self) -> int:
        return self.session.groups_out if self.session else 0

    @groups_out.setter
    def groups_out(self, value: int):
        if self.session:
            self.session.groups_out = value

    @contextmanager
    def profile_operation(self, operation_name: str, records_in: int = 0) -> Iterator["PerformanceProfiler"]:
        """
        Measure the enclosed block as one operation.

        The body may set ``groups_out`` on the yielded profiler. Metrics are
        recorded even when the block raises.

        Args:
            operation_name: Name of the operation being profiled
            records_in: Number of input records
        """
        self.start_profiling(operation_name, records_in)
        try:
            yield self
        finally:
            self.stop_profiling(self.groups_out)

    def start_profiling(self, operation_name: str, records_in: int = 0):
        memory = self._memory_mb()
        self.session = ProfilingSession(
            operation_name=operation_name,
            started_at=time.time(),
            memory_start_mb=memory,
            memory_peak_mb=memory,
            records_in=records_in
        )
        self.logger.debug(f"Profiling {operation_name} over {records_in} records")

    def sample_performance(self):
        """Update the peak memory of the running operation."""
        if self.session is None:
            return

        try:
            self.session.memory_peak_mb = max(self.session.memory_peak_mb, self._memory_mb())
        except psutil.Error as e:
            self.logger.warning(f"Memory sampling failed for {self.session.operation_name}: {e}")

    def stop_profiling(self, groups_out: int = 0) -> PerformanceMetrics:
        """
        Close the running operation and record its metrics.

        Args:
            groups_out: Number of groups (or sheets) produced

        Returns:
            PerformanceMetrics for the finished operation

        Raises:
            ValueError: If no operation is being profiled
        """
        session = self.session
        if session is None:
            raise ValueError("No active profiling session")

        finished_at = time.time()
        elapsed = finished_at - session.started_at

        try:
            memory_end = self._memory_mb()
        except psutil.Error:
            memory_end = session.memory_start_mb

        metrics = PerformanceMetrics(
            operation_name=session.operation_name,
            start_time=session.started_at,
            end_time=finished_at,
            duration=elapsed,
            records_in=session.records_in,
            groups_out=groups_out,
            memory_peak_mb=max(session.memory_peak_mb, memory_end),
            memory_start_mb=session.memory_start_mb,
            memory_end_mb=memory_end,
            records_per_second=session.records_in / elapsed if elapsed > 0 else 0
        )
        self.metrics_history.append(metrics)
        self.session = None

        self.logger.info(
            f"{metrics.operation_name}: {metrics.records_in} records -> {groups_out} groups "
            f"in {elapsed:.2f}s ({metrics.records_per_second:.1f} records/s, "
            f"peak {metrics.memory_peak_mb:.1f} MB)"
        )
        return metrics

    def get_performance_summary(self) -> Dict[str, Any]:
        """
        Aggregate the recorded metrics.

        Returns:
            Totals and averages over all operations, a per-name breakdown
            and the individual operations in recording order
        """
        history = self.metrics_history
        if not history:
            return {"total_operations": 0}

        by_name: Dict[str, Dict[str, float]] = defaultdict(lambda: {"count": 0, "duration": 0.0, "records": 0})
        for entry in history:
            totals = by_name[entry.operation_name]
            totals["count"] += 1
            totals["duration"] += entry.duration
            totals["records"] += entry.records_in

        return {
            "total_operations": len(history),
            "total_duration": sum(entry.duration for entry in history),
            "total_records": sum(entry.records_in for entry in history),
            "total_groups": sum(entry.groups_out for entry in history),
            "average_records_per_second": sum(entry.records_per_second for entry in history) / len(history),
            "average_memory_peak_mb": sum(entry.memory_peak_mb for entry in history) / len(history),
            "by_operation": dict(by_name),
            "operations": [
                {
                    "name": entry.operation_name,
                    "duration": entry.duration,
                    "records": entry.records_in,
                    "groups": entry.groups_out,
                    "memory_peak": entry.memory_peak_mb
                }
                for entry in history
            ]
        }

    @staticmethod
    def _memory_mb() -> float:
        return psutil.Process().memory_info().rss / 1024 / 1024
