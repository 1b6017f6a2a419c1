"""Read-only gate for LLM-generated SQL.

Validates a candidate query before it reaches a connection:
- No mutating, privilege or schema keyword appears anywhere as a whole word
- The statement begins with SELECT, or WITH for common table expressions
- At most one statement is present

This is a conservative lexical check, not a parser. It is paired with
connections that are read-only at the engine level.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum

from sqlchat.exceptions import ValidationRejectedError

logger = logging.getLogger(__name__)

# Keywords that indicate mutation or privilege/schema operations
FORBIDDEN_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "REPLACE",
    "GRANT",
    "REVOKE",
    "ATTACH",
    "DETACH",
    "PRAGMA",
    "EXEC",
)

_FORBIDDEN_PATTERNS = [(kw, re.compile(rf"\b{kw}\b")) for kw in FORBIDDEN_KEYWORDS]
_LEADING_TOKEN = re.compile(r"^(WITH|SELECT)\b")


class ValidationRule(StrEnum):
    """Which rule rejected a query."""

    FORBIDDEN_KEYWORD = "forbidden_keyword"
    LEADING_TOKEN = "leading_token"
    MULTIPLE_STATEMENTS = "multiple_statements"


@dataclass(frozen=True)
class ValidationResult:
    """Result of query validation."""

    valid: bool
    """Whether the query passed validation."""

    sql: str = ""
    """The trimmed query, original casing preserved."""

    error: str | None = None
    """Reason suitable for showing to an end user, if rejected."""

    keyword: str | None = None
    """Offending keyword for denylist rejections."""

    rule: ValidationRule | None = None
    """Rule that rejected the query."""


def _code_only(sql: str) -> str:
    """Blank out string literals, quoted identifiers and comments.

    Returns a string of the same length where only executable SQL text is kept,
    so separators inside quotes or comments are not mistaken for real ones.
    """
    out: list[str] = []
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        if ch in ("'", '"', "`"):
            # Quoted run; a doubled quote is an escaped quote
            j = i + 1
            while j < n:
                if sql[j] == ch:
                    if j + 1 < n and sql[j + 1] == ch:
                        j += 2
                        continue
                    break
                j += 1
            end = min(j + 1, n)
            out.append(" " * (end - i))
            i = end
        elif ch == "-" and sql.startswith("--", i):
            j = sql.find("\n", i)
            end = n if j == -1 else j
            out.append(" " * (end - i))
            i = end
        elif ch == "/" and sql.startswith("/*", i):
            j = sql.find("*/", i + 2)
            end = n if j == -1 else j + 2
            out.append(" " * (end - i))
            i = end
        else:
            out.append(ch)
            i += 1
    return "".join(out)


class QueryValidator:
    """Validates candidate SQL before execution.

    Stateless and side-effect free; one instance can be shared by any number
    of threads.
    """

    def validate(self, sql: str) -> ValidationResult:
        """Validate a SQL query.

        Args:
            sql: Candidate SQL string

        Returns:
            ValidationResult with the verdict and, on rejection, a reason
        """
        trimmed = (sql or "").strip()
        normalized = trimmed.upper()

        for keyword, pattern in _FORBIDDEN_PATTERNS:
            if pattern.search(normalized):
                return ValidationResult(
                    valid=False,
                    sql=trimmed,
                    error=(
                        f"Query validation failed: {keyword} statements are not allowed. "
                        "Only SELECT queries are permitted."
                    ),
                    keyword=keyword,
                    rule=ValidationRule.FORBIDDEN_KEYWORD,
                )

        if not _LEADING_TOKEN.match(normalized):
            return ValidationResult(
                valid=False,
                sql=trimmed,
                error="Query validation failed: query must begin with SELECT (or WITH for CTEs).",
                rule=ValidationRule.LEADING_TOKEN,
            )

        code = _code_only(trimmed).rstrip()
        if code.endswith(";"):
            code = code[:-1]
        if ";" in code:
            return ValidationResult(
                valid=False,
                sql=trimmed,
                error="Query validation failed: multiple statements are not allowed. "
                "Submit a single SELECT query.",
                rule=ValidationRule.MULTIPLE_STATEMENTS,
            )

        return ValidationResult(valid=True, sql=trimmed)

    def require_valid(self, sql: str) -> ValidationResult:
        """Validate and raise on rejection.

        Raises:
            ValidationRejectedError: If the query fails any rule
        """
        result = self.validate(sql)
        if not result.valid:
            logger.info("Rejected query (%s): %s", result.rule, result.error)
            raise ValidationRejectedError(result.error or "Query rejected", keyword=result.keyword)
        return result


def validate_query(sql: str) -> ValidationResult:
    """Convenience function to validate a query.

    Args:
        sql: SQL query to validate

    Returns:
        ValidationResult
    """
    return QueryValidator().validate(sql)
