"""Core types for SQLChat.

All types are designed to be JSON-serializable so results can travel unchanged
to the HTTP API, the CLI's ``--json`` mode and the language model.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

# A single cell of a result row once normalized for JSON
Scalar = str | int | float | bool | None


class BackendKind(StrEnum):
    """Backend strategies a connection handle can be built from."""

    SQLITE = "sqlite"  # Local SQLite file, opened read-only
    MEMORY = "memory"  # Ephemeral in-memory database seeded from in-process tables
    REMOTE = "remote"  # Any SQLAlchemy-supported server (PostgreSQL, MySQL, ...)

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid backend kind values."""
        return [k.value for k in cls]


class ColumnInfo(BaseModel):
    """One column as reported by schema introspection."""

    name: str = Field(..., description="Column name")
    type: str | None = Field(default=None, description="Declared type, if known")
    nullable: bool = Field(default=True, description="False when the column is NOT NULL")
    primary_key: bool = Field(default=False, description="Part of the primary key")


class TableInfo(BaseModel):
    """A table (or view) with its columns, in declaration order."""

    name: str
    columns: list[ColumnInfo] = Field(default_factory=list)
    source: str = Field(
        default="metadata",
        description="Which introspection tier produced the columns (metadata, probe, names, none)",
    )


class QueryResult(BaseModel):
    """Outcome of executing a validated query."""

    sql: str = Field(..., description="The SQL that was executed")
    columns: list[str] = Field(default_factory=list, description="Column names in result order")
    rows: list[dict[str, Scalar]] = Field(
        default_factory=list, description="Returned rows (capped at the executor's row limit)"
    )
    total_row_count: int = Field(default=0, description="Rows the query actually produced")
    truncated: bool = Field(default=False, description="True when rows were capped")
    notice: str | None = Field(default=None, description="Human-readable truncation notice")
    execution_time_ms: float = Field(default=0.0, description="Wall-clock execution time")

    @property
    def row_count(self) -> int:
        """Number of rows returned to the caller."""
        return len(self.rows)


class ToolCall(BaseModel):
    """A tool invocation requested by the language model."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ModelReply(BaseModel):
    """One assistant turn: text, tool calls, or both."""

    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)


class ChatReply(BaseModel):
    """What one user message produced after all tool rounds finished."""

    session_id: str
    explanation: str = ""
    sql_query: str | None = None
    result: QueryResult | None = None
    query_error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
