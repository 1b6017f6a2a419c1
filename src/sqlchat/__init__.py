"""SQLChat - Ask questions about a SQL database in natural language.

A language model turns questions into read-only SQL through a single
``execute_sql`` tool. Every query passes a lexical read-only gate before it
reaches a connection that is itself opened read-only, and results are capped
so they fit in the model's context.

Example:
    from sqlchat import connect_sqlite, describe_schema, execute_query

    connection = connect_sqlite("data/sample.sqlite")

    # Prompt-ready description of every table
    print(describe_schema(connection))

    # Validated, row-capped execution
    result = execute_query(connection, "SELECT name, price FROM products LIMIT 3")
    print(result.rows)
"""

from sqlchat.core.connection import (
    ConnectionHandle,
    connect_remote,
    connect_sqlite,
    connect_tables,
    dispatch,
    get_connection,
)
from sqlchat.core.types import (
    BackendKind,
    ChatReply,
    ColumnInfo,
    QueryResult,
    TableInfo,
)
from sqlchat.exceptions import (
    ChatModelError,
    ConfigurationError,
    ConnectionConfigError,
    ConnectionNotFoundError,
    ConnectionUnsupportedError,
    ExecutionError,
    InvalidBackendError,
    SQLChatConnectionError,
    SQLChatError,
    ValidationRejectedError,
)
from sqlchat.query import (
    QueryExecutor,
    QueryValidator,
    SchemaIntrospector,
    describe_schema,
    execute_query,
    validate_query,
)

__version__ = "0.1.0"
__all__ = [
    # Connections
    "ConnectionHandle",
    "connect_sqlite",
    "connect_tables",
    "connect_remote",
    "dispatch",
    "get_connection",
    # Query pipeline
    "QueryValidator",
    "QueryExecutor",
    "SchemaIntrospector",
    "validate_query",
    "execute_query",
    "describe_schema",
    # Types
    "BackendKind",
    "ColumnInfo",
    "TableInfo",
    "QueryResult",
    "ChatReply",
    # Exceptions
    "SQLChatError",
    "ValidationRejectedError",
    "ExecutionError",
    "ConfigurationError",
    "SQLChatConnectionError",
    "ConnectionNotFoundError",
    "ConnectionUnsupportedError",
    "ConnectionConfigError",
    "InvalidBackendError",
    "ChatModelError",
]
