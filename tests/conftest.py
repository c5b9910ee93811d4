"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator
from uuid import uuid4

from tests.factories import PQRecordFactory

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: int = None):
        self.data = data if data is not None else []
        if count is not None:
            self.count = count
        elif isinstance(self.data, list):
            self.count = len(self.data)
        else:
            self.count = 1


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Works on the table's row list, so inserts, updates and deletes are
    visible to later queries. eq/neq filters are applied on execute().
    """

    def __init__(self, table: "MockSupabaseTable", action: str = "select", payload=None):
        self._table = table
        self._action = action
        self._payload = payload
        self._filters = []
        self._order = None
        self._limit = None
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append((column, value, True))
        return self

    def neq(self, column, value):
        self._filters.append((column, value, False))
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def range(self, start, end):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        for column, value, equal in self._filters:
            if (row.get(column) == value) != equal:
                return False
        return True

    def execute(self) -> MockSupabaseResponse:
        rows = self._table.rows
        now = datetime.now(timezone.utc).isoformat()

        if self._action == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for item in items:
                row = dict(item)
                row.setdefault("id", str(uuid4()))
                row.setdefault("created_at", now)
                row.setdefault("updated_at", now)
                rows.append(row)
                inserted.append(dict(row))
            return MockSupabaseResponse(data=inserted)

        matched = [row for row in rows if self._matches(row)]

        if self._action == "update":
            for row in matched:
                row.update(self._payload)
            return MockSupabaseResponse(data=[dict(row) for row in matched])

        if self._action == "delete":
            for row in matched:
                rows.remove(row)
            return MockSupabaseResponse(data=[dict(row) for row in matched])

        data = [dict(row) for row in matched]
        if self._order:
            column, desc = self._order
            data.sort(key=lambda r: str(r.get(column) or ""), reverse=desc)
        if self._limit is not None:
            data = data[:self._limit]

        if self._is_single:
            return MockSupabaseResponse(data=data[0] if data else None, count=len(data))

        count = self._table.count if self._table.count is not None else len(data)
        return MockSupabaseResponse(data=data, count=count)


class MockSupabaseTable:
    """Mock Supabase table backed by a list of row dicts."""

    def __init__(self, rows: list, count: int = None):
        self.rows = rows
        self.count = count

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self, "update", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable([dict(row) for row in data], count)

    def rows(self, table_name: str = "pq_records") -> list:
        """Current rows of a table, after any writes."""
        return self.table(table_name).rows

    def table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable([])
        return self._tables[name]


class FailingSupabaseClient:
    """Client whose every query raises, for database error paths."""

    def __init__(self, message: str = "connection refused"):
        self.message = message

    def table(self, name: str):
        raise RuntimeError(self.message)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("pq_records", [
                PQRecordFactory.create(invoice_number="EXP/1/2024-25")
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Service singletons are reset so they pick up the mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("pq_records", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.pq_record_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.pq_record_service._pq_record_service", None):
                with patch("services.dashboard_service._dashboard_service", None):
                    yield mock_supabase


@pytest.fixture
def failing_supabase() -> FailingSupabaseClient:
    """Client that raises on every query."""
    return FailingSupabaseClient()


@pytest.fixture
def sample_pq_record_data() -> dict:
    """Sample PQ record row as stored in the database."""
    return {
        "id": "test-uuid-123",
        "date": "2025-07-01",
        "shipper_name": "Sri Balaji Exports",
        "buyer": "Ceylon Traders (Pvt) Ltd",
        "invoice_number": "SBE/101/2025-26",
        "commodity": "Dry Red Chillies",
        "shipping_bill_received": False,
        "pq_status": "Pending",
        "pq_hardcopy": "Not Received",
        "permit_copy_status": "Not Required",
        "destination_port": "SRI LANKA",
        "remarks": "",
        "files": [],
        "created_at": "2025-07-01T10:00:00+00:00",
        "updated_at": "2025-07-01T10:00:00+00:00"
    }


@pytest.fixture
def sample_pq_records_list() -> list:
    """Mixed records: one complete, one pending, one awaiting permit."""
    return [
        PQRecordFactory.create(
            id="uuid-1",
            shipper_name="Sri Balaji Exports",
            invoice_number="SBE/101/2025-26",
            date="2025-07-01",
            created_at="2025-07-01T08:00:00+00:00",
        ),
        PQRecordFactory.create_complete(
            id="uuid-2",
            shipper_name="Guntur Spice Traders",
            buyer="Colombo Foods",
            invoice_number="GST/55/2025-26",
            commodity="Turmeric Fingers",
            date="2025-07-03",
            created_at="2025-07-03T08:00:00+00:00",
        ),
        PQRecordFactory.create(
            id="uuid-3",
            shipper_name="Andhra Rice Mills",
            buyer="Dhaka Grain Co",
            invoice_number="ARM/7/2025-26",
            commodity="Sona Masoori Rice",
            destination_port="BANGLADESH",
            shipping_bill_received=True,
            pq_status="Received",
            permit_copy_status="Not Received",
            date="2025-07-02",
            created_at="2025-07-02T08:00:00+00:00",
        ),
    ]


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("pq_records", [...])
            response = test_client_with_mock_db.get("/api/pq-records")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
