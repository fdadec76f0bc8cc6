"""
Pytest configuration and fixtures for db-compare tests.

Provides an in-memory stand-in for SQL Server that answers the catalog,
column, and fingerprint queries, so the comparison driver can be exercised
end to end without a database.
"""

import hashlib
import re
from contextlib import contextmanager
from pathlib import Path

import pyodbc
import pytest

from dbcompare.errors import ConnectionFailure

_FROM_TABLE = re.compile(r"FROM \[(?P<schema>[^\]]+)\]\.\[(?P<table>[^\]]+)\]\s*$")


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


class FakeDatabase:
    """
    In-memory database holding tables as column lists plus row tuples

    Usage:
        db = FakeDatabase({
            ("dbo", "Customers"): (["Id", "Name"], [(1, "Alice"), (2, "Bob")]),
        })
    """

    def __init__(self, tables=None, failing_tables=()):
        self.tables = dict(tables or {})
        self.failing_tables = set(failing_tables)
        self.queries = []

    def row_text(self, columns, row):
        return "".join("" if value is None else str(value) for value in row[:len(columns)])

    def execute(self, query, params=()):
        self.queries.append((query, tuple(params)))

        if "sys.tables" in query:
            return sorted(self.tables)

        if "INFORMATION_SCHEMA.COLUMNS" in query:
            columns = self.tables.get(tuple(params), ([], []))[0]
            return [(column,) for column in columns]

        if "AS HashVal" in query:
            match = _FROM_TABLE.search(query)
            key = (match.group("schema"), match.group("table"))

            if f"{key[0]}.{key[1]}" in self.failing_tables:
                raise pyodbc.Error("42000", f"Query failed for {key[0]}.{key[1]}")
            if key not in self.tables:
                raise pyodbc.Error("42S02", f"Invalid object name '{key[0]}.{key[1]}'")

            columns, rows = self.tables[key]
            texts = [self.row_text(columns, row) for row in rows]
            if "HASHBYTES" in query:
                return [(hashlib.sha256(text.encode("utf-16-le")).digest(),) for text in texts]
            return [(text,) for text in texts]

        raise AssertionError(f"Unexpected query: {query}")

    def fingerprint_queries(self):
        return [query for query, _ in self.queries if "AS HashVal" in query]


class FakeCursor:
    def __init__(self, database):
        self.database = database
        self.rows = []
        self.closed = False

    def execute(self, query, params=()):
        self.rows = list(self.database.execute(query, params))
        return self

    def fetchall(self):
        rows, self.rows = self.rows, []
        return rows

    def fetchmany(self, size):
        rows, self.rows = self.rows[:size], self.rows[size:]
        return rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, database):
        self.database = database
        self.closed = False

    def cursor(self):
        return FakeCursor(self.database)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_database():
    """Factory for FakeDatabase instances."""
    return FakeDatabase


@pytest.fixture
def fake_connect():
    """
    Build a ``connect(conn_str, side=...)`` factory over named fake databases

    Unknown connection strings fail the way an unreachable server does.
    """

    def factory(databases):
        @contextmanager
        def connect(conn_str, side=""):
            if conn_str not in databases:
                raise ConnectionFailure(f"Could not connect to {side or 'database'} ({conn_str})")
            connection = FakeConnection(databases[conn_str])
            try:
                yield connection
            finally:
                connection.close()

        return connect

    return factory


@pytest.fixture
def customers_databases(fake_database):
    """Old and new databases that disagree on one Customers row."""
    old = fake_database({
        ("dbo", "Customers"): (["Id", "Name"], [(1, "Alice"), (2, "Bob")]),
    })
    new = fake_database({
        ("dbo", "Customers"): (["Id", "Name"], [(1, "Alice"), (2, "Bobby")]),
    })
    return {"old": old, "new": new}


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def clear_dbcompare_env(monkeypatch) -> None:
    """Keep DBCOMPARE_* and Vault settings of the host out of the tests."""
    for name in (
        "DBCOMPARE_OLD_DB",
        "DBCOMPARE_NEW_DB",
        "DBCOMPARE_LOG_DIR",
        "DBCOMPARE_STORAGE_DIR",
        "DBCOMPARE_HASH_MODE",
        "VAULT_ADDR",
        "VAULT_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
