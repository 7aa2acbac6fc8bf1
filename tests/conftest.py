# tests/conftest.py
"""
Fake mysql.connector driver shared by the test suite.

FakeServer scripts the answers to queries: each registered response is
matched by a regular expression against the SQL text, latest registration
first. Connections handed out by the patched mysql.connector.connect() all
talk to the same FakeServer, so a script survives reconnections.
"""
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import mysql.connector
import pytest

from mydbd import logger as query_log
from mydbd.connection import Connection
from mydbd.logger import QueryLogger


class FakeResponse:
    def __init__(self, columns: Optional[Sequence[str]] = None,
                 rows: Union[Sequence[Sequence[Any]], Callable[..., Sequence[Sequence[Any]]], None] = None,
                 rowcount: int = 0, lastrowid: Optional[int] = None,
                 error: Optional[Exception] = None):
        self.columns = tuple(columns) if columns is not None else None
        self.rows = rows
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.error = error

    def resolve_rows(self, params) -> List[Tuple[Any, ...]]:
        rows = self.rows(params) if callable(self.rows) else (self.rows or [])
        return [tuple(row) for row in rows]


class FakeServer:
    def __init__(self):
        self.responses: List[Tuple[re.Pattern, FakeResponse]] = []
        self.executed: List[Tuple[str, Any]] = []
        self.connections: List['FakeConnection'] = []
        self.connect_args: List[Dict[str, Any]] = []
        self.connect_error: Optional[Exception] = None

    def on(self, pattern: str, columns=None, rows=None, rowcount=0, lastrowid=None, error=None) -> FakeResponse:
        response = FakeResponse(columns, rows, rowcount, lastrowid, error)
        self.responses.insert(0, (re.compile(pattern, re.IGNORECASE | re.DOTALL), response))
        return response

    def respond(self, operation: str) -> FakeResponse:
        for pattern, response in self.responses:
            if pattern.search(operation):
                return response
        return FakeResponse()

    def queries(self) -> List[str]:
        return [operation for operation, _ in self.executed]

    def connect(self, **kwargs) -> 'FakeConnection':
        self.connect_args.append(kwargs)
        if self.connect_error is not None:
            raise self.connect_error
        connection = FakeConnection(self, kwargs)
        self.connections.append(connection)
        return connection


class FakeCursor:
    def __init__(self, connection: 'FakeConnection', buffered: bool = False, prepared: bool = False):
        self._connection = connection
        self.buffered = buffered
        self.prepared = prepared
        self.closed = False
        self.column_names: Tuple[str, ...] = ()
        self.with_rows = False
        self.rowcount = -1
        self.lastrowid = None
        self._rows: List[Tuple[Any, ...]] = []

    def execute(self, operation: str, params=None):
        server = self._connection.server
        server.executed.append((operation, params))
        response = server.respond(operation)
        if response.error is not None:
            raise response.error

        if response.columns is not None:
            self._rows = response.resolve_rows(params)
            self.column_names = response.columns
            self.with_rows = True
            self.rowcount = len(self._rows)
        else:
            self._rows = []
            self.column_names = ()
            self.with_rows = False
            self.rowcount = response.rowcount
        self.lastrowid = response.lastrowid

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, server: FakeServer, connect_args: Dict[str, Any]):
        self.server = server
        self.connect_args = connect_args
        self.alive = True
        self.autocommit = connect_args.get('autocommit', True)
        self.calls: List[str] = []
        self.cursors: List[FakeCursor] = []
        self.connection_id = 40 + len(server.connections)

    def is_connected(self) -> bool:
        return self.alive

    def cursor(self, buffered=None, prepared=None):
        cursor = FakeCursor(self, bool(buffered), bool(prepared))
        self.cursors.append(cursor)
        return cursor

    def start_transaction(self):
        self.calls.append('start_transaction')

    def commit(self):
        self.calls.append('commit')

    def rollback(self):
        self.calls.append('rollback')

    def close(self):
        self.calls.append('close')
        self.alive = False


def make_mysql_error(errno: int, msg: str = "error", sqlstate: Optional[str] = None):
    return mysql.connector.errors.DatabaseError(msg=msg, errno=errno, sqlstate=sqlstate)


@pytest.fixture
def fake_server(monkeypatch):
    server = FakeServer()
    monkeypatch.setattr(mysql.connector, 'connect', server.connect)
    return server


@pytest.fixture
def query_logger():
    return QueryLogger()


@pytest.fixture
def dbh(fake_server, query_logger):
    connection = Connection(hostname='db.local', username='test', password='secret', database='test',
                            query_logger=query_logger)
    yield connection
    connection.disconnect()


@pytest.fixture(autouse=True)
def clear_default_query_log():
    yield
    query_log.clear()


@pytest.fixture
def mysql_error():
    """Factory of driver exceptions carrying a MySQL error number."""
    return make_mysql_error
