"""
Shared fixtures and fakes.

FakeEngine/FakeConnection stand in for a MySQL server: every statement is
answered by a responder callable, so EXPLAIN output and SHOW CREATE TABLE
results can be scripted. SQLite engines cover generic execution.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import contextmanager
from typing import Any

import pytest
import sqlalchemy
from sqlalchemy.dialects import mysql

from mysqlgate.config import MySQLSettings


class FakeResult:
    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        columns: list[str] | None = None,
        rowcount: int | None = 0,
        lastrowid: int | None = None,
        returns_rows: bool | None = None,
    ):
        self.rows = rows or []
        self.columns = columns if columns is not None else list(self.rows[0]) if self.rows else []
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.returns_rows = bool(self.columns) if returns_rows is None else returns_rows

    def keys(self) -> list[str]:
        return list(self.columns)

    def __iter__(self):
        return iter(tuple(row[c] for c in self.columns) for row in self.rows)

    def mappings(self) -> FakeResult:
        return self

    def all(self) -> list[dict[str, Any]]:
        return list(self.rows)


Responder = Callable[[str], FakeResult]


class FakeConnection:
    def __init__(self, responder: Responder):
        self.responder = responder
        self.statements: list[str] = []
        self.options: dict[str, Any] = {}

    def execution_options(self, **options: Any) -> FakeConnection:
        self.options.update(options)
        return self

    def exec_driver_sql(self, sql: str) -> FakeResult:
        self.statements.append(sql)
        return self.responder(sql)


class FakeEngine:
    """Engine double with a MySQL dialect; records whether work was committed."""

    def __init__(self, responder: Responder):
        self.dialect = mysql.dialect()
        self.connection = FakeConnection(responder)
        self.committed = 0
        self.rolled_back = 0

    @contextmanager
    def connect(self):
        yield self.connection

    @contextmanager
    def begin(self):
        try:
            yield self.connection
        except BaseException:
            self.rolled_back += 1
            raise
        self.committed += 1


class StaticResolver:
    """Resolver double that always hands out the same engine."""

    def __init__(self, engine: Any):
        self.engine = engine
        self.calls: list[str] = []

    def resolve(self, dsn: str = "") -> Any:
        self.calls.append(dsn)
        return self.engine


@pytest.fixture
def mysql_settings() -> MySQLSettings:
    return MySQLSettings(
        _env_file=None,
        host="db.internal",
        user="app",
        password="secret",
        port=3307,
        database="shop",
        dsn="",
    )


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = sqlalchemy.create_engine(f"sqlite:///{tmp_path / 'shop.sqlite'}")
    with engine.begin() as conn:
        conn.exec_driver_sql(
            """
            CREATE TABLE items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                price REAL,
                data BLOB
            )
            """
        )
        conn.exec_driver_sql(
            "INSERT INTO items (name, price, data) VALUES "
            "('widget', 2.5, X'6869'), ('gadget, deluxe', 10.0, NULL)"
        )
    yield engine
    engine.dispose()
