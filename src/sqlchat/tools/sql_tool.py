"""The ``execute_sql`` tool: validate, execute, and report back as JSON."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlchat.query.executor import QueryExecutor
from sqlchat.tools.base import ToolDefinition, function_to_tool_definition

if TYPE_CHECKING:
    from sqlchat.core.connection import ConnectionHandle
    from sqlchat.core.types import QueryResult

EXECUTE_SQL_DESCRIPTION = (
    "Execute a read-only SQL SELECT query against the user's database and "
    "return the results as JSON. Only SELECT queries (and WITH/CTE) are "
    "allowed. INSERT, UPDATE, DELETE, DROP, and other data-modifying "
    "statements will be rejected."
)

SQL_ARGUMENT_DESCRIPTION = "A valid SQL SELECT query to execute against the database."


def format_tool_result(result: QueryResult) -> str:
    """Render a result for the model: JSON rows, then the truncation notice."""
    payload = json.dumps(result.rows, default=str)
    if result.notice:
        return f"{payload}\n[{result.notice}]"
    return payload


class SqlTool:
    """Binds ``execute_sql`` to one connection.

    ``on_result`` is called with the SQL and its result after every successful
    execution, so a caller can keep the latest query for display.
    """

    def __init__(
        self,
        connection: ConnectionHandle,
        executor: QueryExecutor | None = None,
        on_result: Callable[[str, QueryResult], None] | None = None,
    ) -> None:
        self._connection = connection
        self._executor = executor or QueryExecutor()
        self._on_result = on_result

    def execute_sql(self, sql: str) -> str:
        """Execute a read-only SQL query and return the rows as JSON.

        Raises:
            ValidationRejectedError: If the query is not read-only
            ExecutionError: If the backend rejects the query
        """
        result = self._executor.execute(self._connection, sql)
        if self._on_result is not None:
            self._on_result(sql, result)
        return format_tool_result(result)

    def definition(self) -> ToolDefinition:
        """Tool definition for registration with a model."""
        tool = function_to_tool_definition(
            self.execute_sql, name="execute_sql", description=EXECUTE_SQL_DESCRIPTION
        )
        tool.parameters["properties"]["sql"]["description"] = SQL_ARGUMENT_DESCRIPTION
        return tool
