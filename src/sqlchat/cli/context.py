"""CLI context management for database connections and shared state."""

from dataclasses import dataclass, field

from sqlchat.config import Settings
from sqlchat.core.connection import ConnectionHandle, get_connection


def resolve_settings(
    db_type: str | None = None,
    db_path: str | None = None,
    db_uri: str | None = None,
    db_driver: str | None = None,
) -> Settings:
    """Resolve settings from the environment, then apply CLI overrides.

    Priority:
    1. Explicit CLI option
    2. Environment variable (DB_TYPE, DB_PATH, ...)
    3. Built-in default
    """
    return Settings.from_env().with_overrides(
        db_type=db_type, db_path=db_path, db_uri=db_uri, db_driver=db_driver
    )


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Manages connection lifecycle and output preferences.
    """

    settings: Settings
    json_output: bool
    _connection: ConnectionHandle | None = field(default=None, init=False, repr=False)

    def get_connection(self) -> ConnectionHandle:
        """Get or open the database connection (lazy initialization)."""
        if self._connection is None:
            self._connection = get_connection(self.settings).open()
        return self._connection

    def close(self) -> None:
        """Close database connection if open."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
