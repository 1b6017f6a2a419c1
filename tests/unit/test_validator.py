"""Tests for the read-only query gate."""

import pytest

from sqlchat.exceptions import ValidationRejectedError
from sqlchat.query.validator import (
    FORBIDDEN_KEYWORDS,
    QueryValidator,
    ValidationRule,
    validate_query,
)


@pytest.fixture
def validator() -> QueryValidator:
    return QueryValidator()


class TestAcceptedQueries:
    """Queries that pass the gate."""

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM products",
            "select name from products where price > 10",
            "  SELECT 1  ",
            "WITH top AS (SELECT * FROM products) SELECT * FROM top",
            "SELECT name FROM products;",
            "SELECT ';' AS sep FROM products",
        ],
    )
    def test_valid(self, validator: QueryValidator, sql: str) -> None:
        """Read-only statements are accepted."""
        result = validator.validate(sql)
        assert result.valid, result.error
        assert result.error is None

    def test_trims_but_preserves_case(self, validator: QueryValidator) -> None:
        """Accepted SQL is trimmed with original casing kept."""
        result = validator.validate("\n  Select Name From Products  \n")
        assert result.sql == "Select Name From Products"

    def test_keyword_inside_identifier_is_allowed(self, validator: QueryValidator) -> None:
        """Denylist matches whole words only."""
        assert validator.validate("SELECT created_at, updated_by FROM audit").valid
        assert validator.validate("SELECT deleted FROM users").valid


class TestRejectedQueries:
    """Queries the gate refuses."""

    @pytest.mark.parametrize("keyword", FORBIDDEN_KEYWORDS)
    def test_forbidden_keyword_anywhere(self, validator: QueryValidator, keyword: str) -> None:
        """Every denylisted keyword is rejected and named in the reason."""
        result = validator.validate(f"SELECT * FROM t WHERE note = '{keyword.lower()}'")
        assert not result.valid
        assert result.keyword == keyword
        assert result.rule == ValidationRule.FORBIDDEN_KEYWORD
        assert keyword in (result.error or "")

    def test_drop_statement(self, validator: QueryValidator) -> None:
        """DROP TABLE is rejected with the user-facing message."""
        result = validator.validate("DROP TABLE products")
        assert not result.valid
        assert result.error == (
            "Query validation failed: DROP statements are not allowed. "
            "Only SELECT queries are permitted."
        )

    def test_explain_is_rejected(self, validator: QueryValidator) -> None:
        """Statements that do not begin with SELECT or WITH are rejected."""
        result = validator.validate("EXPLAIN SELECT * FROM products")
        assert not result.valid
        assert result.rule == ValidationRule.LEADING_TOKEN
        assert "must begin with SELECT" in (result.error or "")

    @pytest.mark.parametrize("sql", ["", "   ", "\n\t"])
    def test_empty(self, validator: QueryValidator, sql: str) -> None:
        """Empty or whitespace-only input is rejected."""
        result = validator.validate(sql)
        assert not result.valid
        assert result.rule == ValidationRule.LEADING_TOKEN

    def test_none_is_rejected(self, validator: QueryValidator) -> None:
        """None behaves like an empty string."""
        assert not validator.validate(None).valid  # type: ignore[arg-type]

    def test_multiple_statements(self, validator: QueryValidator) -> None:
        """Two read-only statements in one string are still rejected."""
        result = validator.validate("SELECT 1; SELECT 2")
        assert not result.valid
        assert result.rule == ValidationRule.MULTIPLE_STATEMENTS

    def test_semicolon_in_comment_does_not_count(self, validator: QueryValidator) -> None:
        """Separators inside comments are ignored."""
        assert validator.validate("SELECT 1 -- first; second\n").valid
        assert validator.validate("SELECT 1 /* ; */ FROM products").valid

    def test_stacked_mutation(self, validator: QueryValidator) -> None:
        """A mutation stacked after a SELECT is caught by the denylist."""
        result = validator.validate("SELECT 1; DELETE FROM products")
        assert not result.valid
        assert result.keyword == "DELETE"

    def test_keyword_fragment_is_not_a_denylist_hit(self, validator: QueryValidator) -> None:
        """A bare identifier starting with a keyword fails on the leading token only."""
        result = validator.validate("  update_log_view")
        assert not result.valid
        assert result.rule == ValidationRule.LEADING_TOKEN
        assert result.keyword is None


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT name FROM products",
        "DROP TABLE products",
        "  update_log_view",
        "SELECT 1; SELECT 2",
    ],
)
def test_validation_is_repeatable(validator: QueryValidator, sql: str) -> None:
    """Validating the same text twice gives the same verdict."""
    assert validator.validate(sql) == validator.validate(sql)


class TestRequireValid:
    """Tests for the raising variant."""

    def test_returns_result_when_valid(self, validator: QueryValidator) -> None:
        assert validator.require_valid("SELECT 1").valid

    def test_raises_with_reason(self, validator: QueryValidator) -> None:
        """Rejections raise ValidationRejectedError carrying reason and keyword."""
        with pytest.raises(ValidationRejectedError) as exc_info:
            validator.require_valid("UPDATE products SET price = 0")
        assert exc_info.value.keyword == "UPDATE"
        assert exc_info.value.status_code == 400
        assert "UPDATE statements are not allowed" in exc_info.value.reason


def test_validate_query_helper() -> None:
    """Module-level helper uses a default validator."""
    assert validate_query("SELECT 1").valid
    assert not validate_query("TRUNCATE products").valid
