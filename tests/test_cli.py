"""Tests for the command-line interface."""

import json
import pytest
from click.testing import CliRunner
from openpyxl import load_workbook
from json_tabulator.cli import main


@pytest.fixture
def input_file(temp_dir, customer_documents):
    """JSON input file with mixed customer records."""
    path = temp_dir / "customers.json"
    path.write_text(json.dumps(customer_documents), encoding="utf-8")
    return path


class TestCLI:
    """Tests for the json-tabulator command group."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_version(self):
        """Test the version option."""
        result = self.runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_export(self, input_file, temp_dir):
        """Test exporting a JSON file."""
        output = temp_dir / "out.xlsx"

        result = self.runner.invoke(main, ["export", str(input_file), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "3 records to 2 sheets" in result.output
        assert output.exists()

    def test_export_flat_with_config(self, input_file, temp_dir):
        """Test the single-sheet layout with a configuration file."""
        config = temp_dir / "config.json"
        config.write_text(json.dumps({"defaultSheetName": "Rows"}), encoding="utf-8")
        output = temp_dir / "flat.xlsx"

        result = self.runner.invoke(
            main, ["export", str(input_file), "-o", str(output), "--flat", "--config", str(config)]
        )

        assert result.exit_code == 0, result.output
        assert load_workbook(output).sheetnames == ["Rows"]

    def test_export_invalid_json(self, temp_dir):
        """Test exporting malformed JSON."""
        path = temp_dir / "broken.json"
        path.write_text("[{", encoding="utf-8")

        result = self.runner.invoke(main, ["export", str(path), "-o", str(temp_dir / "out.xlsx")])

        assert result.exit_code == 1
        assert "Export operation failed" in result.output

    def test_export_invalid_config(self, input_file, temp_dir):
        """Test exporting with an invalid configuration file."""
        config = temp_dir / "config.json"
        config.write_text(json.dumps({"arraySampleSize": -1}), encoding="utf-8")

        result = self.runner.invoke(
            main, ["export", str(input_file), "-o", str(temp_dir / "out.xlsx"), "--config", str(config)]
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_restore_to_stdout(self, input_file, temp_dir, customer_documents):
        """Test restoring a workbook to standard output."""
        output = temp_dir / "out.xlsx"
        self.runner.invoke(main, ["export", str(input_file), "-o", str(output)])

        result = self.runner.invoke(main, ["restore", str(output)])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == customer_documents

    def test_restore_to_file(self, input_file, temp_dir, customer_documents):
        """Test restoring a workbook to a JSON file."""
        workbook = temp_dir / "out.xlsx"
        restored = temp_dir / "restored.json"
        self.runner.invoke(main, ["export", str(input_file), "-o", str(workbook)])

        result = self.runner.invoke(main, ["restore", str(workbook), "-o", str(restored)])

        assert result.exit_code == 0, result.output
        assert json.loads(restored.read_text(encoding="utf-8")) == customer_documents

    def test_restore_invalid_workbook(self, temp_dir):
        """Test restoring a file that is not a workbook."""
        path = temp_dir / "fake.xlsx"
        path.write_text("nope", encoding="utf-8")

        result = self.runner.invoke(main, ["restore", str(path)])

        assert result.exit_code == 1
        assert "Restore operation failed" in result.output

    def test_inspect(self, input_file):
        """Test the grouping overview."""
        result = self.runner.invoke(main, ["inspect", str(input_file)])

        assert result.exit_code == 0, result.output
        assert "2 groups" in result.output
        assert "WithUser_(2_Records)" in result.output
        assert "Objects[user]" in result.output

    def test_inspect_json(self, input_file):
        """Test the machine-readable grouping overview."""
        result = self.runner.invoke(main, ["inspect", str(input_file), "--json"])

        assert result.exit_code == 0, result.output
        groups = json.loads(result.output)
        assert [group["recordCount"] for group in groups] == [2, 1]

    def test_missing_input(self, temp_dir):
        """Test that a missing input file is a usage error."""
        result = self.runner.invoke(main, ["export", str(temp_dir / "missing.json")])

        assert result.exit_code == 2
