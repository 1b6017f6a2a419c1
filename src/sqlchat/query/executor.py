"""Query execution with a row cap.

Runs a validated query, materializes the rows, and returns at most
``max_rows`` of them together with the true total so callers can tell the
user their result was cut short.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, time as dt_time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sqlchat.core.types import QueryResult, Scalar
from sqlchat.exceptions import ExecutionError, SQLChatConnectionError
from sqlchat.query.validator import QueryValidator

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from sqlchat.core.connection import ConnectionHandle

logger = logging.getLogger(__name__)

MAX_RESULT_ROWS = 100
DEFAULT_QUERY_TIMEOUT = 60.0


def truncation_notice(returned: int, total: int) -> str:
    """Notice shown when a result was capped."""
    return (
        f"Results truncated to {returned} of {total} total rows. "
        "Suggest the user add LIMIT or more specific filters if they need to see more."
    )


def to_scalar(value: Any) -> Scalar:
    """Normalize a backend value to a JSON scalar."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, dt_time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, uuid.UUID):
        return str(value)
    return str(value)


def unique_labels(labels: list[str]) -> list[str]:
    """Suffix repeated column labels so every row key survives.

    ``["id", "name", "id"]`` becomes ``["id", "name", "id_2"]``.
    """
    originals = set(labels)
    used: set[str] = set()
    unique = []
    for label in labels:
        candidate = label
        n = 2
        while candidate in used or (candidate != label and candidate in originals):
            candidate = f"{label}_{n}"
            n += 1
        used.add(candidate)
        unique.append(candidate)
    return unique


class _Deadline:
    """Interrupts a running statement once ``seconds`` have passed.

    Only DBAPI connections that expose ``interrupt()`` (sqlite3) are armed;
    server backends get a statement timeout when they connect instead.
    """

    def __init__(self, conn: Connection, seconds: float | None) -> None:
        self.expired = False
        self._timer: threading.Timer | None = None
        dbapi_conn = conn.connection.dbapi_connection
        interrupt = getattr(dbapi_conn, "interrupt", None)
        if seconds and callable(interrupt):

            def fire() -> None:
                self.expired = True
                interrupt()

            self._timer = threading.Timer(seconds, fire)
            self._timer.daemon = True

    @contextmanager
    def armed(self) -> Iterator[_Deadline]:
        if self._timer is not None:
            self._timer.start()
        try:
            yield self
        finally:
            if self._timer is not None:
                self._timer.cancel()


class QueryExecutor:
    """Executes read-only queries against a connection handle."""

    def __init__(
        self,
        max_rows: int = MAX_RESULT_ROWS,
        timeout: float | None = DEFAULT_QUERY_TIMEOUT,
        validator: QueryValidator | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            max_rows: Rows returned before the result is truncated
            timeout: Seconds before a running statement is interrupted
            validator: Validator applied again before execution
        """
        self._max_rows = max_rows
        self._timeout = timeout
        self._validator = validator or QueryValidator()

    def execute(self, connection: ConnectionHandle, sql: str) -> QueryResult:
        """Validate and execute a query.

        Args:
            connection: Open connection handle
            sql: Candidate SQL; validated again here even if the caller did

        Returns:
            QueryResult with at most ``max_rows`` rows and the true total

        Raises:
            ValidationRejectedError: If the query is not read-only
            ExecutionError: If the backend fails or the timeout expires
        """
        validation = self._validator.require_valid(sql)

        try:
            connection.ensure_alive()
        except SQLChatConnectionError as e:
            raise ExecutionError(f"SQL execution error: {e.message}", {"sql": sql}) from e

        start_time = time.perf_counter()
        deadline: _Deadline | None = None
        try:
            with connection.connect() as conn:
                deadline = _Deadline(conn, self._timeout)
                with deadline.armed():
                    result = conn.execute(text(validation.sql))
                    columns = unique_labels(list(result.keys()))
                    rows_raw = result.fetchall()
        except SQLAlchemyError as e:
            if deadline is not None and deadline.expired:
                logger.warning("Query interrupted after %ss: %s", self._timeout, sql)
                raise ExecutionError(
                    f"SQL execution error: query timed out after {self._timeout:g} seconds",
                    {"sql": sql, "timeout": self._timeout},
                ) from e
            message = str(getattr(e, "orig", None) or e)
            logger.info("Query failed: %s", message)
            raise ExecutionError(f"SQL execution error: {message}", {"sql": sql}) from e

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        total = len(rows_raw)
        kept = rows_raw[: self._max_rows]
        rows = [
            {col: to_scalar(value) for col, value in zip(columns, row, strict=True)}
            for row in kept
        ]

        truncated = total > self._max_rows
        notice = truncation_notice(len(rows), total) if truncated else None
        logger.info(
            "Query returned %d row(s), %d kept, in %.1fms", total, len(rows), execution_time_ms
        )

        return QueryResult(
            sql=validation.sql,
            columns=columns,
            rows=rows,
            total_row_count=total,
            truncated=truncated,
            notice=notice,
            execution_time_ms=execution_time_ms,
        )


def execute_query(
    connection: ConnectionHandle,
    sql: str,
    max_rows: int = MAX_RESULT_ROWS,
    timeout: float | None = DEFAULT_QUERY_TIMEOUT,
) -> QueryResult:
    """Convenience function to execute a query.

    Args:
        connection: Open connection handle
        sql: SQL query to execute
        max_rows: Row cap
        timeout: Seconds before the statement is interrupted

    Returns:
        QueryResult
    """
    return QueryExecutor(max_rows=max_rows, timeout=timeout).execute(connection, sql)
