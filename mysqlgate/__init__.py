"""
mysqlgate - MCP server for MySQL

Exposes database introspection and SQL execution as MCP tools, with an
optional read-only mode and EXPLAIN-based verification of statement types.
"""

__version__ = "0.1.0"

from mysqlgate.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
