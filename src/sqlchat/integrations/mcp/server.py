"""MCP server for SQLChat.

Exposes the read-only SQL tool and schema description as MCP tools.
"""

from __future__ import annotations

import argparse
import json
import logging

from mcp.server.fastmcp import FastMCP  # type: ignore[import-not-found]

from sqlchat.config import Settings, configure_logging
from sqlchat.core.connection import ConnectionHandle, get_connection
from sqlchat.exceptions import SQLChatError
from sqlchat.query.introspection import SchemaCache
from sqlchat.tools.sql_tool import SqlTool

logger = logging.getLogger(__name__)

# Create MCP server
mcp = FastMCP("sqlchat")

# Global connection (set during server startup)
_connection: ConnectionHandle | None = None
_schema_cache: SchemaCache | None = None


def get_connection_handle() -> ConnectionHandle:
    """Get the connection handle."""
    if _connection is None:
        raise RuntimeError("Database not initialized. Call create_server() first.")
    return _connection


def get_schema_cache() -> SchemaCache:
    """Get the schema cache for the installed connection."""
    if _schema_cache is None:
        raise RuntimeError("Database not initialized. Call create_server() first.")
    return _schema_cache


def set_connection(connection: ConnectionHandle | None) -> None:
    """Install (or clear) the connection the tools run against."""
    global _connection, _schema_cache
    _connection = connection
    _schema_cache = SchemaCache(connection) if connection is not None else None


@mcp.tool()
def describe_schema() -> str:
    """Describe every table and its columns.

    Use this first to learn table and column names before writing SQL.

    Returns:
        Plain-text schema, one block per table.
    """
    try:
        return get_schema_cache().get()
    except SQLChatError as e:
        return json.dumps({"error": e.message})


@mcp.tool()
def execute_sql(sql: str) -> str:
    """Execute a read-only SQL SELECT query and return the rows as JSON.

    Only SELECT queries (and WITH/CTE) are allowed. INSERT, UPDATE, DELETE,
    DROP, and other data-modifying statements are rejected. At most 100 rows
    are returned; a notice follows the JSON when the result was truncated.

    Args:
        sql: A valid SQL SELECT query to execute against the database

    Returns:
        JSON array of row objects, or JSON with an error message.
    """
    try:
        return SqlTool(get_connection_handle()).execute_sql(sql)
    except SQLChatError as e:
        return json.dumps({"error": e.message})


def create_server(settings: Settings) -> FastMCP:
    """Create and configure the MCP server with a database connection.

    Args:
        settings: Resolved settings naming the database

    Returns:
        Configured FastMCP server instance
    """
    set_connection(get_connection(settings).open())
    logger.info("SQLChat MCP server initialized for %s backend", settings.db_type)
    return mcp


def main() -> None:
    """Entry point for running the MCP server."""
    parser = argparse.ArgumentParser(description="SQLChat MCP Server")
    parser.add_argument("--db-type", help="Backend: sqlite or remote (default: DB_TYPE or sqlite)")
    parser.add_argument("--db-path", help="SQLite database file (default: DB_PATH)")
    parser.add_argument("--db-uri", help="Connection URI for a remote database (default: DB_URI)")
    parser.add_argument("--db-driver", help="Remote backend name (default: DB_DRIVER)")
    args = parser.parse_args()

    try:
        settings = Settings.from_env().with_overrides(
            db_type=args.db_type,
            db_path=args.db_path,
            db_uri=args.db_uri,
            db_driver=args.db_driver,
        )
        # Logs go to stderr; stdout carries the stdio transport
        configure_logging(settings.log_level)
        create_server(settings)
    except SQLChatError as e:
        parser.exit(1, f"sqlchat-mcp: {e.message}\n")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
