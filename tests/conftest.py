# tests/conftest.py
"""
Shared fixtures: an in-memory stand-in for the PyMySQL driver.

The fake mimics the parts of PyMySQL that RemoteClient touches: a deferred
connect, buffered cursors with fetchone/scroll, and pymysql.err exceptions.
Every call is recorded in ``server.calls`` so tests can check what was (and
was not) sent to the remote side.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pymysql.err
import pytest

from remotescan.config.models import RemoteOptions
from remotescan.connectors.mysql import RemoteClient


class FakeServer:
    def __init__(self) -> None:
        self.results: Dict[str, Tuple[Optional[List[str]], List[tuple]]] = {}
        self.errors: Dict[str, Exception] = {}
        self.refuse: Optional[Exception] = None
        self.init_error: Optional[BaseException] = None
        self.calls: List[Tuple[str, Any]] = []
        self.connections: List["FakeConnection"] = []

    def add_result(self, sql: str, columns: Optional[Sequence[str]], rows: Sequence[tuple]) -> None:
        self.results[sql] = (list(columns) if columns is not None else None, [tuple(r) for r in rows])

    def add_error(self, sql: str, exc: Exception) -> None:
        self.errors[sql] = exc

    def called(self, name: str) -> List[Any]:
        return [arg for n, arg in self.calls if n == name]


class FakeCursor:
    def __init__(self, server: FakeServer):
        self.server = server
        self.description = None
        self.rowcount = -1
        self._rows: List[tuple] = []
        self.rownumber = 0
        self.closed = False

    def execute(self, sql: str) -> int:
        self.server.calls.append(("execute", sql))
        if sql in self.server.errors:
            raise self.server.errors[sql]
        if sql not in self.server.results:
            raise pymysql.err.ProgrammingError(1146, f"Unknown statement: {sql}")
        columns, rows = self.server.results[sql]
        self.description = (
            tuple((c, 253, None, None, None, None, True) for c in columns)
            if columns is not None
            else None
        )
        self._rows = list(rows)
        self.rowcount = len(rows)
        self.rownumber = 0
        return self.rowcount

    def fetchone(self):
        self.server.calls.append(("fetchone", self.rownumber))
        if self.rownumber >= len(self._rows):
            return None
        row = self._rows[self.rownumber]
        self.rownumber += 1
        return row

    def scroll(self, value: int, mode: str = "relative") -> None:
        self.server.calls.append(("scroll", value))
        r = value if mode == "absolute" else self.rownumber + value
        if not (0 <= r < len(self._rows)):
            raise IndexError("out of range")
        self.rownumber = r

    def close(self) -> None:
        self.server.calls.append(("cursor_close", None))
        self.closed = True


class FakeConnection:
    def __init__(self, server: FakeServer, kwargs: Dict[str, Any]):
        self.server = server
        self.kwargs = kwargs
        self.open = False
        self.close_count = 0

    def connect(self) -> None:
        self.server.calls.append(("connect", self.kwargs.get("host")))
        if self.server.refuse is not None:
            raise self.server.refuse
        self.open = True

    def cursor(self) -> FakeCursor:
        self.server.calls.append(("cursor", None))
        return FakeCursor(self.server)

    def close(self) -> None:
        if not self.open:
            raise pymysql.err.Error("Already closed")
        self.server.calls.append(("close", None))
        self.close_count += 1
        self.open = False


class FakeDriver:
    """Drop-in for the ``pymysql`` module as far as RemoteClient is concerned."""

    def __init__(self, server: FakeServer):
        self.server = server

    def connect(self, **kwargs: Any) -> FakeConnection:
        if self.server.init_error is not None:
            raise self.server.init_error
        conn = FakeConnection(self.server, kwargs)
        self.server.connections.append(conn)
        return conn


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def client(server: FakeServer) -> RemoteClient:
    return RemoteClient(driver=FakeDriver(server))


@pytest.fixture
def table_options() -> RemoteOptions:
    return RemoteOptions(address="db.internal", username="app", password="pw", database="shop", table="orders")


@pytest.fixture
def local_options() -> RemoteOptions:
    return RemoteOptions(address="localhost", database="shop", table="orders")
