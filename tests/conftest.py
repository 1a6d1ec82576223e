import csv
import io
import itertools

import pytest
from rich.console import Console

from sqlcsv_export.config.settings import ConnectionSettings
from sqlcsv_export.exceptions import DatabaseConnectionError
from sqlcsv_export.utils.progress_tracker import ProgressTracker


class FakeCursor:
    """In-memory DB-API cursor."""

    def __init__(self, database):
        self.database = database
        self.description = None
        self.executed = []
        self.fetch_sizes = []
        self.closed = False
        self._rows = iter(())

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        columns, rows = self.database.result_for(sql, params)
        self.description = [
            (name, type_code, None, None, None, None, True) for name, type_code in columns
        ]
        self._rows = iter(rows)
        return self

    def fetchmany(self, size):
        self.fetch_sizes.append(size)
        if self.database.fail_on_fetch == len(self.fetch_sizes):
            raise RuntimeError("connection reset by peer")
        return list(itertools.islice(self._rows, size))

    def close(self):
        self.closed = True


class FakeConnection:
    """Context manager standing in for SqlServerConnection."""

    def __init__(self, database, settings):
        self.database = database
        self.settings = settings
        self.opened = False
        self.closed = False
        self.cursors = []

    def __enter__(self):
        index = len(self.database.connections) - 1
        if index in self.database.fail_connect_on:
            raise DatabaseConnectionError("Login failed for user 'reporter'")
        self.opened = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    @property
    def connection(self):
        return self

    def cursor(self):
        cursor = FakeCursor(self.database)
        self.cursors.append(cursor)
        return cursor


class FakeDatabase:
    """Connection factory serving a fixed or query-dependent result set."""

    def __init__(self, columns=(), rows=(), rows_for=None, fail_connect_on=(), fail_on_fetch=None):
        self.columns = list(columns)
        self.rows = rows
        self.rows_for = rows_for
        self.fail_connect_on = set(fail_connect_on)
        self.fail_on_fetch = fail_on_fetch
        self.connections = []

    def __call__(self, settings):
        connection = FakeConnection(self, settings)
        self.connections.append(connection)
        return connection

    def result_for(self, sql, params):
        if self.rows_for is not None:
            return self.columns, self.rows_for(sql, params)
        return self.columns, self.rows

    @property
    def cursors(self):
        return [cursor for connection in self.connections for cursor in connection.cursors]

    @property
    def executed(self):
        return [statement for cursor in self.cursors for statement in cursor.executed]


@pytest.fixture
def settings():
    return ConnectionSettings(server="sql01.example.local", database="Sales")


@pytest.fixture
def tracker():
    return ProgressTracker(
        console=Console(file=io.StringIO(), width=1000),
        error_console=Console(file=io.StringIO(), width=1000),
    )


@pytest.fixture
def make_database():
    return FakeDatabase


@pytest.fixture
def read_csv():
    def _read(path):
        with open(path, newline="", encoding="utf-8") as f:
            return list(csv.reader(f))
    return _read
