#!/usr/bin/env python3
"""
Example usage of the JSON Tabulator.

This script exports a set of heterogeneous customer records to a grouped
workbook and restores the JSON from it.
"""

import asyncio
import json
import tempfile
from pathlib import Path
from json_tabulator import JSONTabulator, TabulatorConfig


async def main():
    """Main example function."""
    print("JSON Tabulator Example")
    print("=" * 50)

    sample_data = {
        "Records": [
            {
                "id": 1,
                "name": "Alice Johnson",
                "customer": {"email": "alice@example.com", "tier": "gold"},
                "orders": [
                    {"id": "A-100", "total": 25.5},
                    {"id": "A-101", "total": 12.0}
                ]
            },
            {
                "id": 2,
                "name": "Bob Smith",
                "customer": {"email": "bob@example.com", "tier": "silver"},
                "orders": []
            },
            {
                "id": 3,
                "name": "Warehouse sync",
                "metadata": {"source": "erp", "batch": 42},
                "history": list(range(40))
            },
            {"id": 4, "name": "Plain note", "text": "no nested data"}
        ]
    }

    json_string = json.dumps(sample_data, indent=2)
    print(f"Original JSON size: {len(json_string)} characters")

    tabulator = JSONTabulator(TabulatorConfig(small_array_threshold=10, array_sample_size=3))

    print("\nGroups:")
    for group in tabulator.describe(sample_data):
        print(f"   {group['name']}: {', '.join(group['signatureKeys'])}")

    with tempfile.TemporaryDirectory() as temp_dir:
        output_path = Path(temp_dir) / "customers.xlsx"

        print(f"\nExporting to {output_path}...")
        result = await tabulator.export(json_string, str(output_path))

        if not result.success:
            print("❌ Failed to export JSON")
            for error in result.errors or []:
                print(f"   Error: {error}")
            return

        print("✅ Success!")
        print(f"   Sheets created: {result.sheet_count}")
        print(f"   Records written: {result.record_count}")

        print("\nRestoring JSON from the workbook...")
        restored = await tabulator.restore(str(output_path))

        if restored.success:
            print(f"✅ Restored {restored.record_count} records")
            print(restored.json_string[:500] + "...")
        else:
            for error in restored.errors or []:
                print(f"   Error: {error}")


if __name__ == "__main__":
    asyncio.run(main())
