"""
Query/Exec executor.

Runs raw SQL against the resolved engine. Statements go to the driver
untouched (no bind-parameter parsing), so ``%`` and ``:`` in the SQL text
are literal.
"""

from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from mysqlgate.connection import ConnectionResolver
from mysqlgate.encoder import encode_csv
from mysqlgate.errors import (
    ExecSummaryUnavailable,
    ExecutionFailed,
    NotFound,
    driver_message,
)
from mysqlgate.guard import StatementGuard
from mysqlgate.models import ExecSummary, ResultSet, StatementIntent, coerce_value
from mysqlgate.utils.logger import get_logger

logger = get_logger(__name__)

ER_NO_SUCH_TABLE = 1146
CREATE_STATEMENT_COLUMNS = ("Create Table", "Create View")


def _execute(conn: Connection, sql: str) -> CursorResult:
    return conn.execution_options(no_parameters=True).exec_driver_sql(sql)


def _error_code(exc: DBAPIError) -> int | None:
    args = getattr(exc.orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


class QueryExecutor:
    """
    Executes statements for the tool surface.

    The executor has no read-only logic: a mutating entry point is only
    reachable when the tool surface registered it.
    """

    def __init__(self, resolver: ConnectionResolver, guard: StatementGuard):
        self.resolver = resolver
        self.guard = guard

    def _check_intent(self, intent: StatementIntent, sql: str, conn: Connection) -> None:
        if self.guard.applies(intent):
            self.guard.verify(intent, sql, conn)

    def run_query(self, intent: StatementIntent, sql: str, dsn: str = "") -> ResultSet:
        """Run a row-returning statement and materialize every row."""
        engine = self.resolver.resolve(dsn)
        logger.debug(f"Query ({intent.value or 'unchecked'}): {sql}")

        try:
            with engine.connect() as conn:
                self._check_intent(intent, sql, conn)
                result = _execute(conn, sql)
                if not result.returns_rows:
                    return ResultSet()

                headers = list(result.keys())
                rows = [
                    dict(zip(headers, (coerce_value(v) for v in row)))
                    for row in result
                ]
        except SQLAlchemyError as e:
            logger.bind(code=ExecutionFailed.code).error(f"Query failed: {driver_message(e)}")
            raise ExecutionFailed(driver_message(e)) from e

        return ResultSet(headers=headers, rows=rows)

    def run_exec(self, intent: StatementIntent, sql: str, dsn: str = "") -> ExecSummary:
        """
        Run a mutating statement in a transaction and summarize it.

        The summary is read before commit; if it cannot be produced the
        transaction is rolled back.
        """
        engine = self.resolver.resolve(dsn)
        logger.debug(f"Exec ({intent.value or 'unchecked'}): {sql}")

        try:
            with engine.begin() as conn:
                self._check_intent(intent, sql, conn)
                result = _execute(conn, sql)
                summary = self._summarize(intent, result)
        except SQLAlchemyError as e:
            logger.bind(code=ExecutionFailed.code).error(f"Exec failed: {driver_message(e)}")
            raise ExecutionFailed(driver_message(e)) from e

        logger.info(f"Exec done: {summary.to_text()}")
        return summary

    @staticmethod
    def _summarize(intent: StatementIntent, result: CursorResult) -> ExecSummary:
        rows_affected = result.rowcount
        if rows_affected is None or rows_affected < 0:
            raise ExecSummaryUnavailable("driver did not report the number of affected rows")

        if intent is not StatementIntent.INSERT:
            return ExecSummary(rows_affected=rows_affected)

        last_insert_id = result.lastrowid
        if last_insert_id is None:
            raise ExecSummaryUnavailable("driver did not report the last insert id")
        return ExecSummary(rows_affected=rows_affected, last_insert_id=last_insert_id)

    def describe_table(self, name: str, dsn: str = "") -> str:
        """Return the CREATE statement of a table. Never goes through the guard."""
        engine = self.resolver.resolve(dsn)
        statement = f"SHOW CREATE TABLE {self._quote_table(engine, name)}"

        try:
            with engine.connect() as conn:
                rows = _execute(conn, statement).mappings().all()
        except DBAPIError as e:
            if _error_code(e) == ER_NO_SUCH_TABLE:
                raise NotFound(name) from e
            raise ExecutionFailed(driver_message(e)) from e
        except SQLAlchemyError as e:
            raise ExecutionFailed(driver_message(e)) from e

        if not rows:
            raise NotFound(name)
        if len(rows) > 1:
            raise ExecutionFailed(f"unexpected {len(rows)} rows describing table {name}")

        row = rows[0]
        for column in CREATE_STATEMENT_COLUMNS:
            if column in row:
                return str(coerce_value(row[column]))

        values = list(row.values())
        if len(values) < 2:
            raise ExecutionFailed(f"unexpected result shape describing table {name}")
        return str(coerce_value(values[1]))

    @staticmethod
    def _quote_table(engine: Engine, name: str) -> str:
        # schema.table; existing backticks are stripped and re-applied
        preparer = engine.dialect.identifier_preparer
        parts = [part.strip().strip("`") for part in name.split(".")]
        return ".".join(preparer.quote_identifier(part) for part in parts)

    def handle_query(self, intent: StatementIntent, sql: str, dsn: str = "") -> str:
        """Run a query and return it as CSV."""
        return encode_csv(self.run_query(intent, sql, dsn))

    def handle_exec(self, intent: StatementIntent, sql: str, dsn: str = "") -> str:
        """Run a statement and return the human-readable summary."""
        return self.run_exec(intent, sql, dsn).to_text()
