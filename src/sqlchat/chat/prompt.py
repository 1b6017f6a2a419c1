"""System prompt and SQL extraction from free-text replies."""

from __future__ import annotations

import re

_SQL_FENCE = re.compile(r"```(?:sql)?\s*\n(.*?)```", re.IGNORECASE | re.DOTALL)


def build_system_prompt(schema_text: str) -> str:
    """Build the system prompt with the schema embedded in a fenced block."""
    return (
        "You are a data analysis assistant. You help users explore a SQL database "
        "by converting their natural language questions into SQL queries.\n\n"
        "You have access to an `execute_sql` tool that runs read-only SQL queries "
        "against the database. Use this tool to answer data questions.\n\n"
        "RULES:\n"
        "1. Only generate SELECT queries (or WITH/CTE). Never attempt INSERT, "
        "UPDATE, DELETE, DROP, or any data-modifying statement.\n"
        "2. Always use the execute_sql tool to run your query.\n"
        "3. After receiving results, provide a clear natural language summary.\n"
        "4. If the question is ambiguous, ask for clarification before querying.\n"
        "5. If the question cannot be answered with the available schema, say so.\n"
        "6. For large result sets, suggest the user refine their query with LIMIT "
        "or filters.\n\n"
        f"DATABASE SCHEMA:\n```\n{schema_text}\n```"
    )


def extract_sql(text: str | None) -> str | None:
    """Return the first fenced SQL block in a reply, if any."""
    if not text:
        return None
    match = _SQL_FENCE.search(text)
    if match is None:
        return None
    sql = match.group(1).strip()
    return sql or None
