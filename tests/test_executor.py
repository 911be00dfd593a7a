from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from mysqlgate.errors import (
    ExecSummaryUnavailable,
    ExecutionFailed,
    NotFound,
    PlanMismatch,
)
from mysqlgate.executor import QueryExecutor
from mysqlgate.guard import StatementGuard
from mysqlgate.models import StatementIntent

from conftest import FakeEngine, FakeResult, StaticResolver


def _executor(engine, explain_check: bool = False) -> QueryExecutor:
    return QueryExecutor(StaticResolver(engine), StatementGuard(enabled=explain_check))


# -- SQLite-backed execution ---------------------------------------------------


def test_run_query_materializes_rows(sqlite_engine) -> None:
    result = _executor(sqlite_engine).run_query(
        StatementIntent.SELECT, "SELECT id, name, price, data FROM items ORDER BY id"
    )

    assert result.headers == ["id", "name", "price", "data"]
    assert result.rows == [
        {"id": 1, "name": "widget", "price": 2.5, "data": "hi"},
        {"id": 2, "name": "gadget, deluxe", "price": 10.0, "data": None},
    ]


def test_run_query_passes_sql_verbatim(sqlite_engine) -> None:
    result = _executor(sqlite_engine).run_query(
        StatementIntent.SELECT,
        "SELECT name, ':label' AS label FROM items WHERE name LIKE 'wid%'",
    )

    assert result.rows == [{"name": "widget", "label": ":label"}]


def test_handle_query_returns_csv(sqlite_engine) -> None:
    text = _executor(sqlite_engine).handle_query(
        StatementIntent.SELECT, "SELECT name, price FROM items ORDER BY id"
    )

    assert text == 'name,price\nwidget,2.5\n"gadget, deluxe",10.0\n'


def test_run_query_driver_error(sqlite_engine) -> None:
    with pytest.raises(ExecutionFailed, match="no such table"):
        _executor(sqlite_engine).run_query(StatementIntent.SELECT, "SELECT * FROM missing")


def test_run_exec_insert_reports_last_id(sqlite_engine) -> None:
    executor = _executor(sqlite_engine)

    summary = executor.run_exec(
        StatementIntent.INSERT, "INSERT INTO items (name, price) VALUES ('gizmo', 1.0)"
    )

    assert summary.rows_affected == 1
    assert summary.last_insert_id == 3
    assert summary.to_text() == "1 rows affected, last insert id: 3"
    # committed
    rows = executor.run_query(StatementIntent.SELECT, "SELECT COUNT(*) AS n FROM items").rows
    assert rows == [{"n": 3}]


def test_run_exec_update_has_no_insert_id(sqlite_engine) -> None:
    text = _executor(sqlite_engine).handle_exec(
        StatementIntent.UPDATE, "UPDATE items SET price = price + 1"
    )

    assert text == "2 rows affected"


def test_run_exec_constraint_error(sqlite_engine) -> None:
    with pytest.raises(ExecutionFailed, match="NOT NULL"):
        _executor(sqlite_engine).run_exec(
            StatementIntent.INSERT, "INSERT INTO items (price) VALUES (1.0)"
        )


# -- MySQL behaviour through FakeEngine ----------------------------------------


def test_insert_without_generated_id_is_unavailable() -> None:
    engine = FakeEngine(lambda sql: FakeResult(rowcount=1, lastrowid=None))

    with pytest.raises(ExecSummaryUnavailable, match="last insert id"):
        _executor(engine).run_exec(StatementIntent.INSERT, "INSERT INTO t VALUES (1)")

    assert engine.rolled_back == 1
    assert engine.committed == 0


def test_negative_rowcount_is_unavailable() -> None:
    engine = FakeEngine(lambda sql: FakeResult(rowcount=-1))

    with pytest.raises(ExecSummaryUnavailable):
        _executor(engine).run_exec(StatementIntent.UNCHECKED, "CREATE TABLE t (id INT)")


def _plan_then(select_type: str, result: FakeResult):
    def responder(sql: str) -> FakeResult:
        if sql.startswith("EXPLAIN "):
            return FakeResult(rows=[{"id": 1, "select_type": select_type}])
        return result

    return responder


def test_guard_runs_before_statement_when_enabled() -> None:
    engine = FakeEngine(_plan_then("UPDATE", FakeResult(rowcount=4)))

    summary = _executor(engine, explain_check=True).run_exec(
        StatementIntent.UPDATE, "UPDATE t SET x = 1"
    )

    assert summary.rows_affected == 4
    assert engine.connection.statements == ["EXPLAIN UPDATE t SET x = 1", "UPDATE t SET x = 1"]
    assert engine.committed == 1


def test_guard_mismatch_blocks_statement() -> None:
    engine = FakeEngine(_plan_then("DELETE", FakeResult(rowcount=9)))

    with pytest.raises(PlanMismatch):
        _executor(engine, explain_check=True).run_query(
            StatementIntent.SELECT, "DELETE FROM t"
        )

    assert engine.connection.statements == ["EXPLAIN DELETE FROM t"]


def test_guard_skipped_for_unchecked_intent() -> None:
    engine = FakeEngine(lambda sql: FakeResult(rows=[{"Database": "shop"}]))

    result = _executor(engine, explain_check=True).run_query(
        StatementIntent.UNCHECKED, "SHOW DATABASES"
    )

    assert result.rows == [{"Database": "shop"}]
    assert engine.connection.statements == ["SHOW DATABASES"]


def test_guard_skipped_when_disabled() -> None:
    engine = FakeEngine(lambda sql: FakeResult(rows=[{"id": 1}]))

    _executor(engine).run_query(StatementIntent.SELECT, "SELECT id FROM t")

    assert engine.connection.statements == ["SELECT id FROM t"]


def test_statement_without_rows_gives_empty_result() -> None:
    engine = FakeEngine(lambda sql: FakeResult(returns_rows=False))

    result = _executor(engine).run_query(StatementIntent.UNCHECKED, "SET @a = 1")

    assert result.headers == []
    assert result.rows == []


def test_describe_table_returns_create_statement() -> None:
    ddl = "CREATE TABLE `items` (\n  `id` int NOT NULL\n)"
    engine = FakeEngine(lambda sql: FakeResult(rows=[{"Table": "items", "Create Table": ddl}]))

    text = _executor(engine, explain_check=True).describe_table("items")

    assert text == ddl
    assert engine.connection.statements == ["SHOW CREATE TABLE `items`"]


def test_describe_table_quotes_schema_and_table() -> None:
    engine = FakeEngine(lambda sql: FakeResult(rows=[{"View": "v", "Create View": "CREATE VIEW v"}]))

    text = _executor(engine).describe_table("`shop`.v")

    assert text == "CREATE VIEW v"
    assert engine.connection.statements == ["SHOW CREATE TABLE `shop`.`v`"]


def test_describe_table_zero_rows_is_not_found() -> None:
    engine = FakeEngine(lambda sql: FakeResult(rows=[], columns=["Table", "Create Table"]))

    with pytest.raises(NotFound, match="table ghosts does not exist"):
        _executor(engine).describe_table("ghosts")


def test_describe_table_no_such_table_error_is_not_found() -> None:
    class DriverError(Exception):
        pass

    def responder(sql: str) -> FakeResult:
        raise OperationalError(sql, None, DriverError(1146, "Table 'shop.ghosts' doesn't exist"))

    with pytest.raises(NotFound):
        _executor(FakeEngine(responder)).describe_table("ghosts")


def test_describe_table_other_errors_are_execution_failed() -> None:
    class DriverError(Exception):
        pass

    def responder(sql: str) -> FakeResult:
        raise OperationalError(sql, None, DriverError(1142, "SELECT command denied"))

    with pytest.raises(ExecutionFailed, match="denied"):
        _executor(FakeEngine(responder)).describe_table("secret")


def test_per_call_dsn_reaches_resolver() -> None:
    engine = FakeEngine(lambda sql: FakeResult(rows=[{"Tables_in_shop": "items"}]))
    resolver = StaticResolver(engine)
    executor = QueryExecutor(resolver, StatementGuard())

    executor.run_query(StatementIntent.UNCHECKED, "SHOW TABLES", "mysql://u@other/shop")

    assert resolver.calls == ["mysql://u@other/shop"]
