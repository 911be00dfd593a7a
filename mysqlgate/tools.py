"""
MCP tool surface.

Every tool is declared once in TOOL_SPECS. The read-only policy is applied
when the ToolSurface is built: tools that need write access are never
registered, so they cannot be called at all.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from mysqlgate.errors import POLICY_DENIALS, GatewayError, MissingRequiredArgument
from mysqlgate.executor import QueryExecutor
from mysqlgate.models import StatementIntent
from mysqlgate.utils.logger import get_logger

logger = get_logger(__name__)

TOOL_UNAVAILABLE = "tool_unavailable"

DSN_DESCRIPTION = (
    "MySQL DSN (Data Source Name) string. If provided, this overrides the configuration."
)


class ToolKind(str, Enum):
    QUERY = "query"
    EXEC = "exec"
    DESCRIBE = "describe"


@dataclass(frozen=True)
class ToolSpec:
    """Declarative description of one tool."""

    name: str
    description: str
    kind: ToolKind
    intent: StatementIntent = StatementIntent.UNCHECKED
    statement: str | None = None  # fixed SQL; otherwise taken from ``argument``
    argument: str | None = None  # required string argument
    argument_description: str = ""
    requires_write: bool = False


TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="list_database",
        description="List all databases in the MySQL server",
        kind=ToolKind.QUERY,
        statement="SHOW DATABASES",
    ),
    ToolSpec(
        name="list_table",
        description="List all tables in the MySQL server",
        kind=ToolKind.QUERY,
        statement="SHOW TABLES",
    ),
    ToolSpec(
        name="create_table",
        description=(
            "Create a new table in the MySQL server. Make sure you have added proper "
            "comments for each column and the table itself"
        ),
        kind=ToolKind.EXEC,
        argument="query",
        argument_description="The SQL query to create the table",
        requires_write=True,
    ),
    ToolSpec(
        name="alter_table",
        description=(
            "Alter an existing table in the MySQL server. Make sure you have updated "
            "comments for each modified column. DO NOT drop table or existing columns!"
        ),
        kind=ToolKind.EXEC,
        argument="query",
        argument_description="The SQL query to alter the table",
        requires_write=True,
    ),
    ToolSpec(
        name="desc_table",
        description="Describe the structure of a table",
        kind=ToolKind.DESCRIBE,
        argument="name",
        argument_description="The name of the table to describe",
    ),
    ToolSpec(
        name="read_query",
        description=(
            "Execute a read-only SQL query. Make sure you have knowledge of the table "
            "structure before writing WHERE conditions. Call `desc_table` first if necessary"
        ),
        kind=ToolKind.QUERY,
        intent=StatementIntent.SELECT,
        argument="query",
        argument_description="The SQL query to execute",
    ),
    ToolSpec(
        name="write_query",
        description=(
            "Execute a write SQL query. Make sure you have knowledge of the table structure "
            "before executing the query. Make sure the data types match the columns' definitions"
        ),
        kind=ToolKind.EXEC,
        intent=StatementIntent.INSERT,
        argument="query",
        argument_description="The SQL query to execute",
        requires_write=True,
    ),
    ToolSpec(
        name="update_query",
        description=(
            "Execute an update SQL query. Make sure you have knowledge of the table structure "
            "before executing the query. Make sure there is always a WHERE condition. "
            "Call `desc_table` first if necessary"
        ),
        kind=ToolKind.EXEC,
        intent=StatementIntent.UPDATE,
        argument="query",
        argument_description="The SQL query to execute",
        requires_write=True,
    ),
    ToolSpec(
        name="delete_query",
        description=(
            "Execute a delete SQL query. Make sure you have knowledge of the table structure "
            "before executing the query. Make sure there is always a WHERE condition. "
            "Call `desc_table` first if necessary"
        ),
        kind=ToolKind.EXEC,
        intent=StatementIntent.DELETE,
        argument="query",
        argument_description="The SQL query to execute",
        requires_write=True,
    ),
)


def available_tools(read_only: bool) -> list[ToolSpec]:
    """Tools permitted under the given policy, in declaration order."""
    return [spec for spec in TOOL_SPECS if not (read_only and spec.requires_write)]


@dataclass
class ToolResult:
    """Text payload of a tool call; ``is_error`` marks an error payload."""

    text: str
    is_error: bool = False


def _require_string(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str):
        raise MissingRequiredArgument(key)
    return value


def _optional_string(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    return value if isinstance(value, str) else ""


class ToolSurface:
    """Maps tool invocations onto the executor and converts errors to payloads."""

    def __init__(self, executor: QueryExecutor, read_only: bool = False):
        self.executor = executor
        self.read_only = read_only
        self._tools = {spec.name: spec for spec in available_tools(read_only)}

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """Invoke a tool. Domain errors come back as error results, never raised."""
        spec = self._tools.get(name)
        if spec is None:
            logger.bind(code=TOOL_UNAVAILABLE).warning(
                f"{name} is not registered (read_only={self.read_only})"
            )
            return ToolResult(f"tool '{name}' is not available", is_error=True)

        try:
            text = self._dispatch(spec, arguments or {})
        except GatewayError as e:
            if isinstance(e, POLICY_DENIALS):
                logger.bind(code=e.code).warning(f"{name} denied: {e.message}")
            else:
                logger.bind(code=e.code).error(f"{name} failed: {e.message}")
            return ToolResult(e.message, is_error=True)

        return ToolResult(text)

    def _dispatch(self, spec: ToolSpec, arguments: dict[str, Any]) -> str:
        dsn = _optional_string(arguments, "dsn")

        if spec.kind is ToolKind.DESCRIBE:
            return self.executor.describe_table(_require_string(arguments, spec.argument), dsn)

        sql = spec.statement or _require_string(arguments, spec.argument)
        if spec.kind is ToolKind.QUERY:
            return self.executor.handle_query(spec.intent, sql, dsn)
        return self.executor.handle_exec(spec.intent, sql, dsn)

    def register(self, server: FastMCP) -> None:
        """Add one FastMCP tool per registered spec."""
        for spec in self._tools.values():
            server.add_tool(self._make_handler(spec), name=spec.name, description=spec.description)
            logger.debug(f"Registered tool {spec.name}")

    def _make_handler(self, spec: ToolSpec):
        def invoke(arguments: dict[str, Any]) -> str:
            result = self.call(spec.name, arguments)
            if result.is_error:
                raise ToolError(result.text)
            return result.text

        DsnArg = Annotated[str, Field(description=DSN_DESCRIPTION)]

        if spec.argument is None:

            def handler(dsn: DsnArg = "") -> str:
                return invoke({"dsn": dsn})

        elif spec.argument == "name":

            def handler(
                name: Annotated[str, Field(description=spec.argument_description)],
                dsn: DsnArg = "",
            ) -> str:
                return invoke({"name": name, "dsn": dsn})

        else:

            def handler(
                query: Annotated[str, Field(description=spec.argument_description)],
                dsn: DsnArg = "",
            ) -> str:
                return invoke({"query": query, "dsn": dsn})

        handler.__name__ = spec.name
        return handler
