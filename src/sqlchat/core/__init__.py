"""Core components for SQLChat."""

from sqlchat.core.connection import (
    ConnectionHandle,
    InMemoryConnection,
    RemoteConnection,
    SQLiteFileConnection,
    connect_remote,
    connect_sqlite,
    connect_tables,
    dispatch,
    get_connection,
)
from sqlchat.core.types import BackendKind, ColumnInfo, QueryResult, TableInfo

__all__ = [
    "ConnectionHandle",
    "SQLiteFileConnection",
    "InMemoryConnection",
    "RemoteConnection",
    "connect_sqlite",
    "connect_tables",
    "connect_remote",
    "dispatch",
    "get_connection",
    "BackendKind",
    "ColumnInfo",
    "TableInfo",
    "QueryResult",
]
