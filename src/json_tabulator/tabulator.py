"""Main JSON Tabulator implementation."""

import asyncio
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Union
from .config import SHEET_NAME_KEY, TabulatorConfig, resolve_config
from .engines import ClusteringEngine, StructureReconstructor, StructureSignatureEngine
from .error_handler import ErrorHandler
from .flattener import JSONFlattener
from .io import WorkbookReader, WorkbookWriter
from .models import SheetData
from .parser import JSONParser
from .profiler import PerformanceMetrics, PerformanceProfiler
from .sheets import SheetPlanner, build_group_summary
from .type_detector import TypeDetector
from .types import (
    ErrorHandlingStrategy,
    ExportResult,
    FlatRecord,
    ReconstructResult,
    RestoreResult,
    TabulateResult,
    TabulationError,
    TabulatorInterface
)
from .utils import SignatureCache, TypeCache
from .utils.validation import ValidationUtils


class JSONTabulator(TabulatorInterface):
    """
    Main implementation of the tabulator interface.

    Converts JSON documents into grouped worksheets and workbooks back into
    JSON. The synchronous ``tabulate`` and ``reconstruct`` operate on parsed
    values; ``export`` and ``restore`` add parsing and workbook I/O.
    """

    def __init__(self, config: Optional[Union[TabulatorConfig, Dict[str, Any]]] = None,
                 logger: Optional[logging.Logger] = None,
                 enable_parallel_processing: bool = False,
                 max_workers: Optional[int] = None):
        """
        Initialize the JSON Tabulator.

        Args:
            config: TabulatorConfig or flat option mapping
            logger: Optional logger instance
            enable_parallel_processing: Flatten records on a thread pool
            max_workers: Maximum number of worker threads (None = auto-detect)
        """
        self.config = resolve_config(config)
        self.logger = logger or logging.getLogger(__name__)
        self.enable_parallel_processing = enable_parallel_processing

        if enable_parallel_processing:
            self.executor = ThreadPoolExecutor(max_workers=max_workers)
        else:
            self.executor = None

        self.error_handler = ErrorHandler(self.logger)
        self.parser = JSONParser(self.error_handler, self.logger)
        self.flattener = JSONFlattener(self.config, self.logger)
        self.reconstructor = StructureReconstructor(self.logger)
        self.signature_engine = StructureSignatureEngine(
            self.config,
            cache=SignatureCache(self.config.cache_size),
            logger=self.logger
        )
        self.clustering_engine = ClusteringEngine(
            self.config,
            signature_engine=self.signature_engine,
            logger=self.logger
        )
        self.planner = SheetPlanner(self.config, self.logger)
        self.type_detector = TypeDetector(self.config, TypeCache(self.config.cache_size), self.logger)
        self.writer = WorkbookWriter(self.logger)
        self.reader = WorkbookReader(self.type_detector, self.logger)
        self.metrics_history: List[PerformanceMetrics] = []

    @property
    def skip_invalid(self) -> bool:
        return self.config.error_handling == ErrorHandlingStrategy.SKIP_INVALID_DATA

    def tabulate(self, data: Any, group: bool = True) -> TabulateResult:
        """
        Turn a parsed document into a sheet plan.

        Args:
            data: Parsed JSON document (record list, container object or single object)
            group: Cluster records into one sheet per structure group

        Returns:
            TabulateResult with planned sheets

        Raises:
            TabulationError: For a failing record under THROW_IMMEDIATELY
            ValueError: For a failing record under THROW_IMMEDIATELY, or an unsupported root
        """
        values, structure = self.flattener.extract_records(data)
        self.logger.info(f"Tabulating {len(values)} records ({structure.value})")

        profiler = PerformanceProfiler(self.logger)
        with profiler.profile_operation("tabulate", len(values)) as profile:
            flat = self.flattener.flatten_batch(values, self.executor, skip_invalid=self.skip_invalid)
            profile.sample_performance()

            if not flat.records:
                groups = []
                sheets = []
            elif group:
                groups = self.clustering_engine.cluster(flat.records)
                sheets = self.planner.plan(groups, flat.headers)
            else:
                groups = []
                sheets = self.planner.plan_flat(flat.records, flat.headers)

            profile.groups_out = len(sheets)
        self.metrics_history.extend(profiler.metrics_history)

        return TabulateResult(
            success=True,
            sheets=sheets,
            record_count=len(flat.records),
            group_count=len(groups),
            errors=flat.errors or None,
            groups=groups
        )

    async def tabulate_async(self, data: Any, group: bool = True,
                             timeout: Optional[float] = None) -> TabulateResult:
        """
        Run ``tabulate`` off the event loop.

        Args:
            data: Parsed JSON document
            group: Cluster records into structure groups
            timeout: Optional timeout in seconds

        Raises:
            asyncio.TimeoutError: If the timeout expires
        """
        loop = asyncio.get_running_loop()
        # The default executor keeps tabulate off the flattening pool it submits to.
        task = loop.run_in_executor(None, self.tabulate, data, group)
        if timeout is None:
            return await task
        return await asyncio.wait_for(task, timeout)

    def reconstruct(self, records: List[FlatRecord]) -> ReconstructResult:
        """
        Rebuild nested values from flat records.

        Args:
            records: Flat records

        Returns:
            ReconstructResult with one nested value per rebuilt record

        Raises:
            TabulationError: For a failing record under THROW_IMMEDIATELY
        """
        validation = ValidationUtils.validate_records(records)
        if not validation.is_valid:
            return ReconstructResult(
                success=False,
                values=[],
                errors=[error.message for error in validation.errors]
            )

        values = []
        errors = []
        for position, record in enumerate(records):
            try:
                values.append(self.reconstructor.reconstruct_record(record))
            except TabulationError as e:
                if not self.skip_invalid:
                    raise
                message = f"Record {position}: {e}"
                self.logger.warning(f"Skipping record that failed to reconstruct: {message}")
                errors.append(message)

        self.logger.info(f"Reconstructed {len(values)} of {len(records)} records")
        return ReconstructResult(success=True, values=values, errors=errors or None)

    async def export(self, json_string: str, output_path: str, group: bool = True) -> ExportResult:
        """
        Convert a JSON document into a workbook.

        Args:
            json_string: Input JSON string
            output_path: Target .xlsx path
            group: One sheet per structure group instead of a single sheet

        Returns:
            ExportResult with operation details
        """
        path_validation = self.error_handler.validate_output_path(output_path)
        if not path_validation.is_valid:
            return ExportResult(
                success=False,
                output_path=output_path,
                sheet_count=0,
                record_count=0,
                errors=[error.message for error in path_validation.errors]
            )
        for warning in path_validation.warnings:
            self.logger.warning(warning)

        try:
            data = self.parser.parse(json_string)
        except ValueError as e:
            return ExportResult(
                success=False,
                output_path=output_path,
                sheet_count=0,
                record_count=0,
                errors=[str(e)]
            )

        try:
            result = await self.tabulate_async(data, group)

            summary = None
            if group and self.config.create_summary_sheet and result.groups:
                summary = build_group_summary(result.groups)

            loop = asyncio.get_running_loop()
            write_result = await loop.run_in_executor(
                None, self.writer.write, result.sheets, output_path, summary
            )

        except TabulationError as e:
            response = self.error_handler.handle_tabulation_error(e)
            return ExportResult(
                success=False,
                output_path=output_path,
                sheet_count=0,
                record_count=0,
                errors=[str(e), response.suggested_action]
            )
        except ValueError as e:
            return ExportResult(
                success=False,
                output_path=output_path,
                sheet_count=0,
                record_count=0,
                errors=[str(e)]
            )

        return ExportResult(
            success=True,
            output_path=write_result["path"],
            sheet_count=len(result.sheets),
            record_count=result.record_count,
            errors=result.errors
        )

    async def restore(self, input_path: str) -> RestoreResult:
        """
        Convert a workbook back into a JSON document.

        All data sheets are read in workbook order and their records are
        rebuilt into one JSON array. With ``include_sheet_metadata`` each
        rebuilt object carries the name of its sheet under ``_sheetName``.

        Args:
            input_path: Path of the .xlsx file

        Returns:
            RestoreResult with the reconstructed JSON
        """
        loop = asyncio.get_running_loop()

        try:
            sheets = await loop.run_in_executor(None, self.reader.read, input_path)
            records = [record for sheet in sheets for record in self._tag_records(sheet)]
            result = self.reconstruct(records)
        except TabulationError as e:
            response = self.error_handler.handle_tabulation_error(e)
            return RestoreResult(
                success=False,
                json_string="",
                errors=[str(e), response.suggested_action]
            )

        return RestoreResult(
            success=result.success,
            json_string=json.dumps(result.values, indent=2, ensure_ascii=False),
            record_count=len(result.values),
            errors=result.errors
        )

    def _tag_records(self, sheet: SheetData) -> List[FlatRecord]:
        if not self.config.include_sheet_metadata:
            return sheet.records

        tagged = []
        for record in sheet.records:
            if SHEET_NAME_KEY in record:
                self.logger.warning(
                    f"Overwriting '{SHEET_NAME_KEY}' column of a record in sheet '{sheet.name}'"
                )
            tagged.append({**record, SHEET_NAME_KEY: sheet.name})
        return tagged

    def describe(self, data: Any) -> List[Dict[str, Any]]:
        """
        Summarize how a parsed document would be grouped.

        Returns:
            One entry per group with its size, strategy and the distinct
            signature keys of its records
        """
        result = self.tabulate(data, group=True)
        summary = []
        for group in result.groups:
            keys: List[str] = []
            for record in group.records:
                key = self.signature_engine.signature(record).signature_key()
                if key not in keys:
                    keys.append(key)
            entry = group.to_dict()
            entry["signatureKeys"] = keys
            summary.append(entry)
        return summary

    def close(self) -> None:
        """Shut down the worker pool, if any."""
        if self.executor is not None:
            self.executor.shutdown(wait=True)
            self.executor = None
