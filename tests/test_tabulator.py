"""Integration tests for the JSON Tabulator."""

import asyncio
import json
import pytest
from openpyxl import load_workbook
from json_tabulator import JSONTabulator, TabulatorConfig
from json_tabulator.io import SUMMARY_SHEET_NAME
from json_tabulator.types import ArrayIndexConflictError, MalformedPathError


class TestJSONTabulator:
    """Tests for the synchronous JSONTabulator operations."""

    def setup_method(self):
        """Set up test fixtures."""
        self.tabulator = JSONTabulator()

    def test_tabulate_groups(self, user_and_plain_records):
        """Test one sheet per structure group."""
        result = self.tabulator.tabulate(user_and_plain_records)

        assert result.success
        assert result.record_count == 3
        assert result.group_count == 2
        assert [sheet.name for sheet in result.sheets] == ["WithUser_(2_Records)", "MixedData_SingleRecord"]
        assert result.errors is None

    def test_tabulate_flat(self, user_and_plain_records):
        """Test the single-sheet layout."""
        result = self.tabulator.tabulate(user_and_plain_records, group=False)

        assert len(result.sheets) == 1
        assert result.sheets[0].name == "Data"
        assert result.sheets[0].headers == ["user.name", "x"]
        assert result.group_count == 0

    def test_tabulate_container_document(self):
        """Test that container keys are unwrapped."""
        result = self.tabulator.tabulate({"Records": [{"a": 1}, {"a": 2}], "total": 2})

        assert result.record_count == 2
        assert result.sheets[0].records == [{"a": 1}, {"a": 2}]

    def test_tabulate_single_object(self):
        """Test that a plain object is one record."""
        result = self.tabulator.tabulate({"id": 1, "user": {"name": "A"}})

        assert result.record_count == 1
        assert result.sheets[0].name == "WithUser_SingleRecord"

    def test_tabulate_empty(self):
        """Test that an empty document gives an empty plan."""
        result = self.tabulator.tabulate([])

        assert result.success
        assert result.sheets == []
        assert result.record_count == 0

    def test_tabulate_throws_by_default(self):
        """Test the throw-immediately policy."""
        with pytest.raises(MalformedPathError):
            self.tabulator.tabulate([{"a": 1}, {"b.c": 2}])

    def test_tabulate_skips_invalid_records(self):
        """Test the skip-invalid policy."""
        tabulator = JSONTabulator({"errorHandling": "skip"})

        result = tabulator.tabulate([{"a": 1}, {"b.c": 2}, {"a": 3}])

        assert result.success
        assert result.record_count == 2
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Record 1:")

    def test_tabulate_non_object_records(self):
        """Test that scalar records become empty rows."""
        result = self.tabulator.tabulate([{"a": 1}, 5])

        assert result.success
        assert result.record_count == 2
        assert result.sheets[0].records == [{"a": 1}, {}]

    def test_tabulate_count_column_collision(self):
        """Test that a count-like property is reported instead of overwritten."""
        with pytest.raises(MalformedPathError):
            self.tabulator.tabulate([{"a_Count": 5, "a": list(range(15))}])

        skipping = JSONTabulator({"errorHandling": "skip"})
        result = skipping.tabulate([{"a_Count": 5, "a": list(range(15))}, {"b": 1}])

        assert result.record_count == 1
        assert "a_Count" in result.errors[0]

    def test_tabulate_records_metrics(self, user_and_plain_records):
        """Test that each run is profiled."""
        self.tabulator.tabulate(user_and_plain_records)

        assert len(self.tabulator.metrics_history) == 1
        assert self.tabulator.metrics_history[0].records_in == 3
        assert self.tabulator.metrics_history[0].groups_out == 2

    def test_tabulate_parallel(self):
        """Test that parallel flattening gives the same plan."""
        records = [{"id": i, "user": {"n": i}} if i % 2 else {"id": i, "tags": [i, i + 1]} for i in range(40)]
        parallel = JSONTabulator(enable_parallel_processing=True, max_workers=4)

        try:
            expected = self.tabulator.tabulate(records)
            actual = parallel.tabulate(records)
        finally:
            parallel.close()

        assert [sheet.name for sheet in actual.sheets] == [sheet.name for sheet in expected.sheets]
        assert [sheet.records for sheet in actual.sheets] == [sheet.records for sheet in expected.sheets]
        assert parallel.executor is None

    def test_reconstruct(self, customer_documents):
        """Test rebuilding values from tabulated records."""
        result = self.tabulator.tabulate(customer_documents, group=False)

        rebuilt = self.tabulator.reconstruct(result.sheets[0].records)

        assert rebuilt.success
        assert rebuilt.values == customer_documents

    def test_reconstruct_conflict_throws(self):
        """Test the throw-immediately policy on reconstruction."""
        with pytest.raises(ArrayIndexConflictError):
            self.tabulator.reconstruct([{"a": 1, "a.b": 2}])

    def test_reconstruct_conflict_skipped(self):
        """Test the skip-invalid policy on reconstruction."""
        tabulator = JSONTabulator(TabulatorConfig(error_handling="skip"))

        result = tabulator.reconstruct([{"a": 1, "a.b": 2}, {"c.d": 1}])

        assert result.success
        assert result.values == [{"c": {"d": 1}}]
        assert result.errors[0].startswith("Record 0:")

    def test_reconstruct_invalid_input(self):
        """Test validation of reconstruction input."""
        result = self.tabulator.reconstruct("not records")

        assert not result.success
        assert result.errors

    def test_describe(self, user_and_plain_records):
        """Test the grouping summary."""
        groups = self.tabulator.describe(user_and_plain_records)

        assert [group["name"] for group in groups] == ["WithUser_(2_Records)", "MixedData_SingleRecord"]
        assert groups[0]["signatureKeys"] == ["Objects[user]"]
        assert groups[1]["signatureKeys"] == ["SimpleRecord"]
        assert groups[0]["strategy"] == "friendly-name"


class TestJSONTabulatorAsync:
    """Tests for the asynchronous JSONTabulator operations."""

    def setup_method(self):
        """Set up test fixtures."""
        self.tabulator = JSONTabulator()

    @pytest.mark.asyncio
    async def test_tabulate_async(self, user_and_plain_records):
        """Test running tabulate off the event loop."""
        result = await self.tabulator.tabulate_async(user_and_plain_records, timeout=30)

        assert result.group_count == 2

    @pytest.mark.asyncio
    async def test_tabulate_async_concurrent(self, user_and_plain_records, typed_records):
        """Test independent concurrent runs."""
        first, second = await asyncio.gather(
            self.tabulator.tabulate_async(user_and_plain_records),
            self.tabulator.tabulate_async(typed_records),
        )

        assert first.group_count == 2
        assert second.group_count == 3

    @pytest.mark.asyncio
    async def test_export_and_restore(self, customer_documents, temp_dir):
        """Test the workbook round trip."""
        output_path = temp_dir / "customers.xlsx"

        export_result = await self.tabulator.export(json.dumps(customer_documents), str(output_path))

        assert export_result.success
        assert export_result.sheet_count == 2
        assert export_result.record_count == 3
        assert output_path.exists()
        assert load_workbook(output_path).sheetnames == [
            "WithUser_(2_Records)",
            "MixedData_SingleRecord",
            SUMMARY_SHEET_NAME,
        ]

        restore_result = await self.tabulator.restore(str(output_path))

        assert restore_result.success
        assert restore_result.record_count == 3
        assert json.loads(restore_result.json_string) == customer_documents

    @pytest.mark.asyncio
    async def test_restore_with_sheet_metadata(self, customer_documents, temp_dir):
        """Test tagging restored records with their sheet name."""
        output_path = temp_dir / "tagged.xlsx"
        tabulator = JSONTabulator({"includeSheetMetadata": True})
        await tabulator.export(json.dumps(customer_documents), str(output_path))

        restore_result = await tabulator.restore(str(output_path))

        assert restore_result.success
        assert json.loads(restore_result.json_string) == [
            {**customer_documents[0], "_sheetName": "WithUser_(2_Records)"},
            {**customer_documents[1], "_sheetName": "WithUser_(2_Records)"},
            {**customer_documents[2], "_sheetName": "MixedData_SingleRecord"},
        ]

    @pytest.mark.asyncio
    async def test_export_flat(self, customer_documents, temp_dir):
        """Test exporting to a single sheet without summary."""
        output_path = temp_dir / "flat.xlsx"

        result = await self.tabulator.export(json.dumps(customer_documents), str(output_path), group=False)

        assert result.success
        assert load_workbook(output_path).sheetnames == ["Data"]

    @pytest.mark.asyncio
    async def test_export_without_summary(self, customer_documents, temp_dir):
        """Test disabling the summary sheet."""
        tabulator = JSONTabulator({"createSummarySheet": False})
        output_path = temp_dir / "no_summary.xlsx"

        await tabulator.export(json.dumps(customer_documents), str(output_path))

        assert SUMMARY_SHEET_NAME not in load_workbook(output_path).sheetnames

    @pytest.mark.asyncio
    async def test_export_invalid_json(self, temp_dir):
        """Test export of malformed input."""
        result = await self.tabulator.export('{"a": ', str(temp_dir / "out.xlsx"))

        assert not result.success
        assert "Invalid JSON input" in result.errors[0]

    @pytest.mark.asyncio
    async def test_export_invalid_record(self, temp_dir):
        """Test that record errors are reported rather than raised."""
        result = await self.tabulator.export('[{"a.b": 1}]', str(temp_dir / "out.xlsx"))

        assert not result.success
        assert len(result.errors) == 2

    @pytest.mark.asyncio
    async def test_export_to_directory(self, temp_dir):
        """Test export to an unusable path."""
        result = await self.tabulator.export('[{"a": 1}]', str(temp_dir))

        assert not result.success
        assert "directory" in result.errors[0]

    @pytest.mark.asyncio
    async def test_restore_missing_file(self, temp_dir):
        """Test restore from a missing workbook."""
        result = await self.tabulator.restore(str(temp_dir / "missing.xlsx"))

        assert not result.success
        assert result.json_string == ""
