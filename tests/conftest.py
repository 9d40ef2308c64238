"""Pytest configuration and fixtures."""

import pytest
import tempfile
from pathlib import Path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def user_and_plain_records():
    """Two records with a nested user object and one plain record."""
    return [
        {"user": {"name": "A"}},
        {"user": {"name": "B"}},
        {"x": 1},
    ]


@pytest.fixture
def nested_record():
    """A record using every shape the flattener expands."""
    return {
        "name": "Alice",
        "active": True,
        "score": 9.5,
        "nickname": None,
        "user": {
            "id": 1,
            "tags": ["admin", "ops"]
        },
        "orders": [
            {"id": 10, "items": [{"sku": "A-1", "qty": 2}]},
            {"id": 11, "items": []}
        ],
        "settings": {},
        "matrix": [[1, 2], [3]]
    }


@pytest.fixture
def customer_documents():
    """Mixed customer records as they would come from an export file."""
    return [
        {"name": "A", "user": {"id": 1, "email": "a@example.com"}},
        {"name": "B", "user": {"id": 2, "email": "b@example.com"}},
        {"x": 1},
    ]


@pytest.fixture
def typed_records():
    """Twelve flat records spread evenly over three type values."""
    return [
        {"type": ["invoice", "receipt", "quote"][i % 3], "number": i}
        for i in range(12)
    ]
