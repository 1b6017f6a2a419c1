"""Read-only query gate, schema introspection and execution.

Architecture:
    1. Query Validator - lexical read-only gate for candidate SQL
    2. Schema Introspector - prompt-ready description of tables and columns
    3. Query Executor - runs validated SQL and caps the returned rows

Example:
    result = execute_query(connection, "SELECT name, price FROM products LIMIT 3")
    schema_text = describe_schema(connection)
"""

from sqlchat.query.executor import MAX_RESULT_ROWS, QueryExecutor, execute_query
from sqlchat.query.introspection import (
    NO_TABLES_SENTINEL,
    SchemaCache,
    SchemaIntrospector,
    describe_schema,
)
from sqlchat.query.validator import (
    FORBIDDEN_KEYWORDS,
    QueryValidator,
    ValidationResult,
    ValidationRule,
    validate_query,
)

__all__ = [
    "QueryValidator",
    "ValidationResult",
    "ValidationRule",
    "FORBIDDEN_KEYWORDS",
    "validate_query",
    "SchemaIntrospector",
    "SchemaCache",
    "NO_TABLES_SENTINEL",
    "describe_schema",
    "QueryExecutor",
    "MAX_RESULT_ROWS",
    "execute_query",
]
