"""Custom exceptions for SQLChat.

All exceptions are designed to be shown to the person (or model) who caused them:
- Actionable error messages that tell what went wrong AND how to fix it
- A ``status_code`` the HTTP layer uses to pick the response class
"""

from __future__ import annotations

from typing import Any


class SQLChatError(Exception):
    """Base exception for all SQLChat errors."""

    status_code = 500

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict for agent consumption."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ValidationRejectedError(SQLChatError):
    """Candidate SQL was rejected by the read-only gate."""

    status_code = 400

    def __init__(self, reason: str, keyword: str | None = None) -> None:
        super().__init__(reason, {"keyword": keyword} if keyword else {})
        self.reason = reason
        self.keyword = keyword


class ExecutionError(SQLChatError):
    """An accepted query failed (or timed out) in the backend."""

    pass


class ConfigurationError(SQLChatError):
    """Settings could not be resolved."""

    pass


# === Connection Errors ===


class SQLChatConnectionError(SQLChatError):
    """Failed to open a connection to the configured backend."""

    pass


class ConnectionNotFoundError(SQLChatConnectionError):
    """Local database file does not exist."""

    def __init__(self, path: str) -> None:
        message = (
            f"Database file not found at: {path}. "
            "Set the DB_PATH environment variable (or --db-path) to an existing SQLite file, "
            "or point DB_TYPE=remote at a database server instead."
        )
        super().__init__(message, {"path": path})
        self.path = path


class ConnectionUnsupportedError(SQLChatConnectionError):
    """Driver support libraries for a remote backend are not installed."""

    def __init__(self, driver: str, missing: str, install_hint: str | None = None) -> None:
        hint = install_hint or f"pip install {missing}"
        message = (
            f"Remote driver '{driver}' requires '{missing}', which is not installed. "
            f"Install it with: {hint}"
        )
        super().__init__(message, {"driver": driver, "missing": missing, "install": hint})
        self.driver = driver
        self.missing = missing


class ConnectionConfigError(SQLChatConnectionError):
    """Connection parameters are invalid."""

    pass


class InvalidBackendError(ConnectionConfigError):
    """Unknown backend discriminator."""

    VALID_KINDS = ["sqlite", "memory", "remote"]

    def __init__(self, kind: str) -> None:
        message = f"Unknown DB_TYPE: '{kind}'. Valid types: {', '.join(self.VALID_KINDS)}"
        super().__init__(message, {"kind": kind, "valid_kinds": self.VALID_KINDS})
        self.kind = kind


# === Chat Errors ===


class ChatModelError(SQLChatError):
    """The language model could not be reached or returned an unusable reply."""

    status_code = 502
