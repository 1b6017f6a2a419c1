"""Schema introspection for prompt building.

Renders every table and view of a connection as plain text that can be
embedded directly into an LLM system prompt:

    TABLE products
        id INTEGER NOT NULL [PRIMARY KEY]
        name TEXT NOT NULL
        price REAL

Column detail is gathered per table through a fallback chain, so one table
with unreadable metadata never hides the others:
    1. Backend metadata (types, NOT NULL, primary key)
    2. Zero-row probe query (names and coarse types)
    3. Plain column-name listing
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sqlchat.core.types import ColumnInfo, TableInfo

if TYPE_CHECKING:
    from sqlchat.core.connection import ConnectionHandle

logger = logging.getLogger(__name__)

NO_TABLES_SENTINEL = "(no tables found in database)"

# Bounds on the rendered text so very wide schemas stay usable in a prompt
MAX_SCHEMA_CHARS = 20_000
MAX_COLUMNS_PER_TABLE = 200

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _clean(identifier: str) -> str:
    """Make an identifier safe to place inside a fenced prompt block."""
    return _CONTROL_CHARS.sub("", str(identifier)).replace("`", "'")


def render_column(column: ColumnInfo) -> str:
    """Render one indented column line."""
    parts = [_clean(column.name)]
    if column.type:
        parts.append(_clean(column.type).upper())
    line = "    " + " ".join(parts)
    if not column.nullable:
        line += " NOT NULL"
    if column.primary_key:
        line += " [PRIMARY KEY]"
    return line


def render_table(table: TableInfo, max_columns: int = MAX_COLUMNS_PER_TABLE) -> str:
    """Render a table block: header line plus one line per column."""
    lines = [f"TABLE {_clean(table.name)}"]
    lines.extend(render_column(col) for col in table.columns[:max_columns])
    hidden = len(table.columns) - max_columns
    if hidden > 0:
        lines.append(f"    ... ({hidden} more columns)")
    return "\n".join(lines)


class SchemaIntrospector:
    """Collects and renders the schema of one connection."""

    def __init__(
        self,
        connection: ConnectionHandle,
        max_chars: int = MAX_SCHEMA_CHARS,
        max_columns: int = MAX_COLUMNS_PER_TABLE,
    ) -> None:
        self._connection = connection
        self._max_chars = max_chars
        self._max_columns = max_columns

    def describe_table(self, name: str) -> TableInfo:
        """Introspect one table, degrading through the fallback tiers."""
        try:
            columns = self._connection.column_metadata(name)
            if columns:
                return TableInfo(name=name, columns=columns, source="metadata")
        except Exception as e:
            logger.debug("Metadata lookup failed for %s, probing instead: %s", name, e)

        try:
            columns = self._connection.probe_columns(name)
            return TableInfo(name=name, columns=columns, source="probe")
        except Exception as e:
            logger.debug("Probe query failed for %s, listing names instead: %s", name, e)

        try:
            names = self._connection.column_names(name)
            return TableInfo(
                name=name, columns=[ColumnInfo(name=n) for n in names], source="names"
            )
        except Exception as e:
            logger.debug("Could not list columns of %s: %s", name, e)

        return TableInfo(name=name, source="none")

    def tables(self) -> list[TableInfo]:
        """Introspect every table and view."""
        return [self.describe_table(name) for name in self._connection.table_names()]

    def describe(self) -> str:
        """Render the whole schema as prompt-ready text.

        Returns:
            Table blocks separated by blank lines, or ``NO_TABLES_SENTINEL``
        """
        names = self._connection.table_names()
        if not names:
            return NO_TABLES_SENTINEL

        blocks: list[str] = []
        used = 0
        for index, name in enumerate(names):
            block = render_table(self.describe_table(name), self._max_columns)
            cost = len(block) + 2
            if blocks and used + cost > self._max_chars:
                omitted = [_clean(n) for n in names[index:]]
                blocks.append(f"-- {len(omitted)} more tables omitted: {', '.join(omitted)}")
                logger.info("Schema text capped at %d characters", self._max_chars)
                break
            blocks.append(block)
            used += cost

        return "\n\n".join(blocks)


def describe_schema(connection: ConnectionHandle, max_chars: int = MAX_SCHEMA_CHARS) -> str:
    """Convenience function to render a connection's schema.

    Args:
        connection: Open connection handle
        max_chars: Soft cap on the rendered text

    Returns:
        Prompt-ready schema text
    """
    return SchemaIntrospector(connection, max_chars=max_chars).describe()


class SchemaCache:
    """Schema text computed once per connection and reused until refreshed.

    The text is recomputed automatically after the handle re-acquires its
    connection.
    """

    def __init__(self, connection: ConnectionHandle, max_chars: int = MAX_SCHEMA_CHARS) -> None:
        self._connection = connection
        self._max_chars = max_chars
        self._text: str | None = None
        self._generation = -1

    def get(self) -> str:
        """Return the cached schema text, introspecting on first use."""
        if self._text is None or self._generation != self._connection.generation:
            self._text = describe_schema(self._connection, max_chars=self._max_chars)
            self._generation = self._connection.generation
        return self._text

    def refresh(self) -> str:
        """Discard the cached text and introspect again."""
        self._text = None
        return self.get()
