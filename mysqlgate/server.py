"""
MCP server assembly.

Wires the connection cache, resolver, guard, executor and tool surface
together and serves them over the stdio transport.
"""

from mcp.server.fastmcp import FastMCP

from mysqlgate import __version__
from mysqlgate.config import Settings
from mysqlgate.connection import ConnectionCache, ConnectionResolver
from mysqlgate.executor import QueryExecutor
from mysqlgate.guard import StatementGuard
from mysqlgate.tools import ToolSurface
from mysqlgate.utils.logger import get_logger

logger = get_logger(__name__)

SERVER_NAME = "mysqlgate"


def build_surface(settings: Settings, cache: ConnectionCache | None = None) -> ToolSurface:
    """Build the tool surface for the given settings."""
    resolver = ConnectionResolver(settings.mysql, cache or ConnectionCache())
    guard = StatementGuard(enabled=settings.mysql.explain_check)
    executor = QueryExecutor(resolver, guard)
    return ToolSurface(executor, read_only=settings.mysql.read_only)


def create_server(settings: Settings, surface: ToolSurface | None = None) -> FastMCP:
    """Create a FastMCP server with every permitted tool registered."""
    surface = surface or build_surface(settings)
    logger.debug(f"Creating MCP server {SERVER_NAME} {__version__}")

    server = FastMCP(SERVER_NAME)
    surface.register(server)

    logger.info(
        f"Registered tools: {', '.join(surface.tool_names)} "
        f"(read_only={settings.mysql.read_only}, explain_check={settings.mysql.explain_check})"
    )
    return server


def run_server(settings: Settings) -> None:
    """Serve over stdio until the client disconnects."""
    logger.info("Starting MCP MySQL server")
    surface = build_surface(settings)
    server = create_server(settings, surface)

    try:
        server.run(transport="stdio")
    finally:
        surface.executor.resolver.cache.clear()
        logger.info("Server shutting down")
