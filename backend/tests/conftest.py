"""
Pytest fixtures and configuration for reminder service tests.

Provides:
- Mock Supabase client emulating the PostgREST query builder
- Fake notification channel recording sends and scripted outcomes
- Test client with the run's collaborators patched
- A fixed run instant
"""
import pytest
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional
from unittest.mock import patch

from fastapi.testclient import TestClient

from reminder_engine.core.database import SupabaseClient
from reminder_engine.main import app
from reminder_engine.services.notifications import (
    NotificationChannel,
    NotificationResult,
    NotificationTransport,
)


RUN_NOW = datetime(2025, 4, 14, 12, 0, 0, tzinfo=timezone.utc)


def _comparable(value: Any) -> Any:
    """ISO timestamps compare as datetimes, everything else as-is."""
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return value
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return value


# ==========================================
# MOCK SUPABASE RESPONSE & TABLE
# ==========================================

class MockSupabaseResponse:
    """Mock response from Supabase operations."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockNotFilter:
    """Helper class to handle negated filters like .not_.is_()."""

    def __init__(self, table: "MockSupabaseTable"):
        self._table = table

    def is_(self, column: str, value: Any):
        self._table._filters.append(("not_is", column, value))
        return self._table

    def eq(self, column: str, value: Any):
        self._table._filters.append(("not_eq", column, value))
        return self._table


class MockSupabaseTable:
    """Mock Supabase table operations (read side)."""

    def __init__(self, table_name: str, mock_data: Dict[str, list], failures: Dict[str, Exception]):
        self.table_name = table_name
        self.mock_data = mock_data
        self.failures = failures
        self._filters = []
        self._select_fields = "*"
        self._order_by = None
        self._order_desc = False
        self._limit = None

    def select(self, fields: str = "*", count: str = None):
        self._select_fields = fields
        return self

    def eq(self, column: str, value: Any):
        self._filters.append(("eq", column, value))
        return self

    def lt(self, column: str, value: Any):
        self._filters.append(("lt", column, value))
        return self

    def is_(self, column: str, value: Any):
        self._filters.append(("is", column, value))
        return self

    @property
    def not_(self):
        return MockNotFilter(self)

    def order(self, column: str, desc: bool = False):
        self._order_by = column
        self._order_desc = desc
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def _matches(self, row: dict, op: str, column: str, value: Any) -> bool:
        actual = row.get(column)
        if op == "eq":
            return actual == value
        if op == "not_eq":
            return actual != value
        if op == "lt":
            return actual is not None and _comparable(actual) < _comparable(value)
        if op == "is":
            return actual is None if value == "null" else actual == value
        if op == "not_is":
            return actual is not None if value == "null" else actual != value
        return True

    def execute(self):
        """Execute the query and return results."""
        if self.table_name in self.failures:
            raise self.failures[self.table_name]

        results = [
            row for row in self.mock_data.get(self.table_name, [])
            if all(self._matches(row, op, column, value) for op, column, value in self._filters)
        ]

        if self._order_by:
            results.sort(
                key=lambda row: _comparable(row.get(self._order_by)),
                reverse=self._order_desc
            )

        if self._limit:
            results = results[:self._limit]

        return MockSupabaseResponse(results)


class MockFunctionsClient:
    """Mock edge function client recording invocations."""

    def __init__(self):
        self.invocations: List[tuple] = []
        self.failing_numbers: set = set()

    def invoke(self, function_name: str, invoke_options: Optional[dict] = None):
        body = (invoke_options or {}).get("body", {})
        self.invocations.append((function_name, body))
        if body.get("phoneNumber") in self.failing_numbers:
            raise RuntimeError("Edge Function returned a non-2xx status code")
        return b'{"success": true}'


class MockSupabaseClientInner:
    """Mock inner Supabase client (the object with table() and functions)."""

    def __init__(self, mock_data: Dict[str, list]):
        self.mock_data = mock_data
        self.failures: Dict[str, Exception] = {}
        self.functions = MockFunctionsClient()

    def table(self, table_name: str) -> MockSupabaseTable:
        return MockSupabaseTable(table_name, self.mock_data, self.failures)

    def fail_table(self, table_name: str, error: Exception) -> None:
        """Make every query on a table raise."""
        self.failures[table_name] = error


# ==========================================
# FAKE NOTIFICATION CHANNEL
# ==========================================

class FakeChannel(NotificationChannel):
    """Records every send; numbers can be scripted to fail or raise."""

    transport = NotificationTransport.LOG

    def __init__(self, failing: Optional[set] = None, raising: Optional[set] = None):
        self.sent: List[tuple] = []
        self.failing = set(failing or ())
        self.raising = set(raising or ())

    async def send(self, phone_number: str, message: str) -> NotificationResult:
        self.sent.append((phone_number, message))
        if phone_number in self.raising:
            raise ConnectionError(f"channel down for {phone_number}")
        if phone_number in self.failing:
            return NotificationResult(
                success=False,
                transport=self.transport,
                error="recipient rejected"
            )
        return NotificationResult(
            success=True,
            transport=self.transport,
            message_id=f"fake-{len(self.sent)}"
        )

    @property
    def recipients(self) -> List[str]:
        return [phone for phone, _ in self.sent]


# ==========================================
# FIXTURES
# ==========================================

@pytest.fixture
def now() -> datetime:
    """The run's captured instant."""
    return RUN_NOW


@pytest.fixture
def mock_data() -> Dict[str, list]:
    """Table rows, keyed by table name."""
    return {
        "configuracoes": [],
        "notas_medicos": [],
        "profiles": [],
    }


@pytest.fixture
def supabase_inner(mock_data) -> MockSupabaseClientInner:
    return MockSupabaseClientInner(mock_data)


@pytest.fixture
def mock_db(supabase_inner) -> SupabaseClient:
    """Real gateway over the mock client, so query building is exercised."""
    return SupabaseClient(client=supabase_inner)


@pytest.fixture
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def client(mock_db, fake_channel) -> Generator[TestClient, None, None]:
    """
    Test client with the run's collaborators patched.

    The run uses the wall clock, so rows must be aged relative to it.
    """
    with patch("reminder_engine.services.reminder_orchestrator.get_supabase_client", return_value=mock_db), \
         patch("reminder_engine.services.reminder_orchestrator.get_notification_channel", return_value=fake_channel):
        with TestClient(app) as test_client:
            yield test_client


# ==========================================
# MARKERS
# ==========================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (isolated, fast)")
    config.addinivalue_line("markers", "integration: Integration tests (several components together)")
    config.addinivalue_line("markers", "edge: Edge case tests")
