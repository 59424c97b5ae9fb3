import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from main import app, get_connector, get_data_access
from tools.data_access import DataAccess
from tools.fallback_store import FallbackStore
from tools.supabase_tools import SupabaseConnector


class FakeAPIError(Exception):
    def __init__(self, message, code=None, hint=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Mimics the postgrest builder chain used by SupabaseConnector."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.operation = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.descending = False
        self.row_limit = None
        self.count_mode = None

    def select(self, columns="*", count=None):
        self.operation = "select"
        self.count_mode = count
        return self

    def insert(self, row):
        self.operation, self.payload = "insert", row
        return self

    def update(self, patch):
        self.operation, self.payload = "update", patch
        return self

    def upsert(self, row):
        self.operation, self.payload = "upsert", row
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by, self.descending = column, desc
        return self

    def limit(self, size):
        self.row_limit = size
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    async def execute(self):
        self.db.calls.append((self.operation, self.table, self.payload, list(self.filters)))
        if self.operation in self.db.fail_on or "*" in self.db.fail_on:
            raise FakeAPIError(f"{self.operation} falhou", code="500", hint="tente novamente")
        if self.table in self.db.missing_tables:
            raise FakeAPIError(f'relation "{self.table}" does not exist', code="42P01")
        rows = self.db.tables.setdefault(self.table, [])
        if self.operation == "select":
            found = [dict(row) for row in rows if self._matches(row)]
            if self.order_by:
                found.sort(key=lambda row: str(row.get(self.order_by) or ""), reverse=self.descending)
            total = len(found)
            if self.row_limit:
                found = found[: self.row_limit]
            return FakeResponse(found, count=total if self.count_mode else None)
        if self.operation == "insert":
            row = self.db.new_row(self.payload)
            rows.append(row)
            return FakeResponse([dict(row)])
        if self.operation == "upsert":
            for existing in rows:
                if existing.get("id") == self.payload.get("id"):
                    existing.update(self.payload)
                    return FakeResponse([dict(existing)])
            row = self.db.new_row(self.payload)
            rows.append(row)
            return FakeResponse([dict(row)])
        if self.operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return FakeResponse(updated)
        if self.operation == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return FakeResponse([])
        raise AssertionError(self.operation)


class FakeSupabase:
    def __init__(self):
        self.tables = {"leads": [], "depoimentos": [], "site_config": []}
        self.fail_on = set()
        self.missing_tables = set()
        self.calls = []
        self._next_id = 1
        self._clock = datetime(2024, 2, 1, tzinfo=timezone.utc)

    def new_row(self, payload):
        row = dict(payload)
        if row.get("id") is None:
            row["id"] = self._next_id
            self._next_id += 1
        self._clock += timedelta(minutes=1)
        row.setdefault("created_at", self._clock.isoformat())
        return row

    def seed(self, table, row):
        created = self.new_row(row)
        self.tables[table].append(created)
        return created

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def online_connector(fake_db):
    return SupabaseConnector("https://projeto.supabase.co", "chave-anon-de-teste-0123456789abcdef", client=fake_db)


@pytest.fixture
def offline_connector():
    return SupabaseConnector(None, None)


@pytest.fixture
def online_access(online_connector):
    return DataAccess(online_connector, FallbackStore())


@pytest.fixture
def offline_access(offline_connector):
    return DataAccess(offline_connector, FallbackStore())


def _client_for(data_access):
    app.dependency_overrides[get_connector] = lambda: data_access.connector
    app.dependency_overrides[get_data_access] = lambda: data_access
    return TestClient(app)


@pytest.fixture
def offline_client(offline_access):
    yield _client_for(offline_access)
    app.dependency_overrides.clear()


@pytest.fixture
def online_client(online_access):
    yield _client_for(online_access)
    app.dependency_overrides.clear()


@pytest.fixture
def strict_client(online_connector):
    yield _client_for(DataAccess(online_connector, FallbackStore(), strict_persistence=True))
    app.dependency_overrides.clear()
