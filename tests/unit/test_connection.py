"""Tests for database connection handles."""

from pathlib import Path

import pytest
from sqlalchemy import text

from sqlchat.config import Settings
from sqlchat.core.connection import (
    InMemoryConnection,
    RemoteConnection,
    SQLiteFileConnection,
    connect_tables,
    dispatch,
    get_connection,
)
from sqlchat.core.types import BackendKind, ColumnInfo
from sqlchat.exceptions import (
    ConnectionConfigError,
    ConnectionNotFoundError,
    ConnectionUnsupportedError,
    InvalidBackendError,
    SQLChatConnectionError,
)
from sqlchat.query.executor import execute_query


class TestSQLiteFileConnection:
    """Tests for SQLiteFileConnection class."""

    def test_missing_file(self) -> None:
        """A missing file fails fast and names the path."""
        with pytest.raises(ConnectionNotFoundError) as exc_info:
            SQLiteFileConnection("/nonexistent/shop.sqlite")
        assert "/nonexistent/shop.sqlite" in exc_info.value.message
        assert "DB_PATH" in exc_info.value.message

    def test_engine_created_lazily(self, sample_db_path: Path) -> None:
        """Engine is not created until accessed."""
        conn = SQLiteFileConnection(sample_db_path)
        assert conn._engine is None
        assert conn.dialect == "sqlite"
        assert conn._engine is not None
        conn.close()

    def test_context_manager(self, sample_db_path: Path) -> None:
        with SQLiteFileConnection(sample_db_path) as conn:
            assert conn.is_alive()
        assert conn._engine is None

    def test_table_names_include_views(self, sqlite_conn: SQLiteFileConnection) -> None:
        names = sqlite_conn.table_names()
        assert names[:2] == ["events", "products"]
        assert "expensive_products" in names

    def test_probe_columns(self, sqlite_conn: SQLiteFileConnection) -> None:
        columns = sqlite_conn.probe_columns("products")
        assert [c.name for c in columns] == ["id", "name", "price", "category"]

    def test_probe_columns_are_typed_from_a_sample_row(
        self, sqlite_conn: SQLiteFileConnection
    ) -> None:
        """sqlite3 reports no cursor types, so the first row supplies them."""
        columns = sqlite_conn.probe_columns("products")
        assert [c.type for c in columns] == ["INTEGER", "TEXT", "REAL", "TEXT"]

    def test_column_names(self, sqlite_conn: SQLiteFileConnection) -> None:
        assert sqlite_conn.column_names("events") == ["id", "kind"]

    def test_writes_are_refused(self, sqlite_conn: SQLiteFileConnection) -> None:
        """The engine itself rejects writes, independent of validation."""
        from sqlalchemy.exc import OperationalError

        with pytest.raises(OperationalError):
            with sqlite_conn.connect() as conn:
                conn.execute(text("DELETE FROM products"))

    def test_reconnect(self, sqlite_conn: SQLiteFileConnection) -> None:
        """A disposed handle is re-acquired transparently."""
        sqlite_conn.open()
        sqlite_conn._dispose()
        assert not sqlite_conn.is_alive()
        sqlite_conn.ensure_alive()
        assert sqlite_conn.is_alive()


class TestInMemoryConnection:
    """Tests for InMemoryConnection class."""

    def test_loads_columnar_data(self, memory_conn: InMemoryConnection) -> None:
        result = execute_query(memory_conn, "SELECT region, amount FROM sales ORDER BY amount DESC")
        assert result.rows[0] == {"region": "north", "amount": 120.5}
        assert result.total_row_count == 3

    def test_row_mappings(self) -> None:
        """Lists of row dicts are accepted; missing keys become NULL."""
        conn = connect_tables({"people": [{"name": "Ana", "age": 31}, {"name": "Bo"}]})
        result = execute_query(conn, "SELECT name, age FROM people ORDER BY name")
        assert result.rows == [{"name": "Ana", "age": 31}, {"name": "Bo", "age": None}]
        conn.close()

    def test_inferred_types(self, memory_conn: InMemoryConnection) -> None:
        columns = {c.name: c.type for c in memory_conn.column_metadata("sales")}
        assert columns["units"] == "INTEGER"
        assert columns["amount"] == "FLOAT"
        assert columns["region"] == "TEXT"

    def test_empty_mapping(self) -> None:
        with pytest.raises(ConnectionConfigError, match="At least one table"):
            InMemoryConnection({})

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name(self, name: str) -> None:
        with pytest.raises(ConnectionConfigError, match="non-blank"):
            InMemoryConnection({name: {"a": [1]}})

    def test_duplicate_names_case_insensitive(self) -> None:
        with pytest.raises(ConnectionConfigError, match="Duplicate table name"):
            InMemoryConnection({"Sales": {"a": [1]}, "sales": {"a": [2]}})

    def test_ragged_columns(self) -> None:
        with pytest.raises(ConnectionConfigError, match="same length"):
            InMemoryConnection({"t": {"a": [1, 2], "b": [1]}})

    def test_scalar_column(self) -> None:
        with pytest.raises(ConnectionConfigError, match="sequence of values"):
            InMemoryConnection({"t": {"a": "not a list"}})

    def test_writes_are_refused(self, memory_conn: InMemoryConnection) -> None:
        from sqlalchemy.exc import OperationalError

        with pytest.raises(OperationalError):
            with memory_conn.connect() as conn:
                conn.execute(text("DELETE FROM sales"))

    def test_reconnect_reloads_data(self, memory_conn: InMemoryConnection) -> None:
        memory_conn.reconnect()
        assert execute_query(memory_conn, "SELECT COUNT(*) AS n FROM sales").rows == [{"n": 3}]

    def test_reconnect_bumps_generation(self, memory_conn: InMemoryConnection) -> None:
        memory_conn.open()
        before = memory_conn.generation
        memory_conn.reconnect()
        assert memory_conn.generation == before + 1

    def test_concurrent_checkouts_are_separate_connections(
        self, memory_conn: InMemoryConnection
    ) -> None:
        """Each checkout gets its own read-only DBAPI connection to the same data."""
        from sqlalchemy.exc import OperationalError

        with memory_conn.connect() as first, memory_conn.connect() as second:
            assert first.connection.dbapi_connection is not second.connection.dbapi_connection
            for conn in (first, second):
                assert conn.execute(text("SELECT COUNT(*) FROM sales")).scalar() == 3
                assert conn.exec_driver_sql("PRAGMA query_only").scalar() == 1
            with pytest.raises(OperationalError):
                second.execute(text("DELETE FROM sales"))

    def test_close_then_reuse_reloads(self, memory_conn: InMemoryConnection) -> None:
        memory_conn.open()
        memory_conn.close()
        assert memory_conn._anchor is None
        assert memory_conn.probe_columns("sales")[0] == ColumnInfo(name="region", type="TEXT")

    def test_probe_columns_on_empty_table(self) -> None:
        """Without a sample row the probe still reports column names."""
        with InMemoryConnection({"empty": {"a": [], "b": []}}) as conn:
            columns = conn.probe_columns("empty")
        assert [(c.name, c.type) for c in columns] == [("a", None), ("b", None)]


class TestRemoteConnection:
    """Tests for RemoteConnection configuration (no server required)."""

    def test_missing_uri(self) -> None:
        with pytest.raises(ConnectionConfigError, match="DB_URI"):
            RemoteConnection("postgresql", "")

    def test_driver_mismatch(self) -> None:
        with pytest.raises(ConnectionConfigError, match="does not match"):
            RemoteConnection("mysql", "postgresql://user@localhost/shop")

    def test_driver_inferred_from_uri(self) -> None:
        conn = RemoteConnection("", "postgresql://user@localhost/shop")
        assert conn.driver == "postgresql"

    def test_postgresql_uses_psycopg3(self) -> None:
        conn = RemoteConnection("postgresql", "postgres://user@localhost/shop")
        assert conn._url.drivername == "postgresql+psycopg"

    @pytest.mark.parametrize("uri", ["mysql://u:p@127.0.0.1:1/shop", "mysql+pymysql://u@h/shop"])
    def test_mysql_uses_pymysql(self, uri: str) -> None:
        """Plain mysql:// URIs use the driver the mysql extra installs."""
        conn = RemoteConnection("mysql", uri)
        assert conn._url.drivername == "mysql+pymysql"
        assert conn.driver == "mysql"

    def test_postgresql_session_is_read_only(self) -> None:
        conn = RemoteConnection("postgresql", "postgresql://user@localhost/shop", query_timeout=5)
        options = conn._connect_args()["options"]
        assert "default_transaction_read_only=on" in options
        assert "statement_timeout=5000" in options

    def test_unknown_dialect(self) -> None:
        """A URI naming an unavailable dialect reports what to install."""
        conn = RemoteConnection("", "nosuchdb://user@localhost/shop")
        with pytest.raises(ConnectionUnsupportedError) as exc_info:
            conn.open()
        assert "nosuchdb" in exc_info.value.message


class TestDispatch:
    """Tests for backend selection."""

    def test_sqlite(self, sample_db_path: Path) -> None:
        conn = dispatch("sqlite", path=sample_db_path)
        assert isinstance(conn, SQLiteFileConnection)
        assert conn.kind == BackendKind.SQLITE
        conn.close()

    def test_sqlite_missing_file(self) -> None:
        with pytest.raises(ConnectionNotFoundError) as exc_info:
            dispatch("sqlite", path="/nonexistent")
        assert "/nonexistent" in str(exc_info.value)

    def test_memory(self) -> None:
        conn = dispatch("memory", tables={"t": {"a": [1, 2]}})
        assert isinstance(conn, InMemoryConnection)
        conn.close()

    def test_unknown_kind(self) -> None:
        """Unknown kinds name the bad value and the allowed set."""
        with pytest.raises(InvalidBackendError) as exc_info:
            dispatch("bogus")
        message = exc_info.value.message
        assert "bogus" in message
        for kind in BackendKind.values():
            assert kind in message

    def test_connection_errors_share_a_base(self) -> None:
        with pytest.raises(SQLChatConnectionError):
            dispatch("bogus")

    def test_get_connection_from_settings(self, sample_db_path: Path) -> None:
        conn = get_connection(Settings(db_type="sqlite", db_path=str(sample_db_path)))
        assert execute_query(conn, "SELECT COUNT(*) AS n FROM products").rows == [{"n": 6}]
        conn.close()
