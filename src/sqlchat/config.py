"""Settings and logging setup.

This is the only module that reads the environment. Everything else receives
an already-resolved ``Settings`` instance.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import Any

from pydantic import Field, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqlchat.core.types import BackendKind
from sqlchat.exceptions import ConfigurationError, InvalidBackendError

DEFAULT_DB_PATH = "data/sample.sqlite"
DEFAULT_LLM_MODEL = "gpt-4o-mini"


def _configuration_error(error: ValidationError) -> ConfigurationError:
    """Turn the first pydantic error into an actionable ConfigurationError."""
    first = error.errors()[0]
    name = ".".join(str(part) for part in first["loc"]) or "settings"
    value = first.get("input")
    return ConfigurationError(
        f"{name} is invalid: {first['msg']} (got '{value}')",
        {"variable": name, "value": str(value)},
    )


class Settings(BaseSettings):
    """Resolved application settings.

    Each field is read from the environment variable named by its alias.
    """

    db_type: str = Field(
        default=BackendKind.SQLITE.value,
        validation_alias="DB_TYPE",
        description="sqlite, memory or remote",
    )
    db_path: str = Field(
        default=DEFAULT_DB_PATH, validation_alias="DB_PATH", description="SQLite file for db_type=sqlite"
    )
    db_driver: str = Field(
        default="", validation_alias="DB_DRIVER", description="Backend name for db_type=remote"
    )
    db_uri: str = Field(
        default="", validation_alias="DB_URI", description="Connection URI for db_type=remote"
    )

    llm_model: str = Field(
        default=DEFAULT_LLM_MODEL, validation_alias="LLM_MODEL", description="Chat model identifier"
    )
    llm_api_key: str | None = Field(
        default=None, validation_alias="OPENAI_API_KEY", description="API key for the chat model"
    )
    llm_base_url: str | None = Field(
        default=None,
        validation_alias="LLM_BASE_URL",
        description="Base URL of an OpenAI-compatible endpoint",
    )
    llm_timeout: PositiveInt = Field(
        default=120, validation_alias="LLM_TIMEOUT", description="Seconds to wait for one model call"
    )

    query_timeout: PositiveInt = Field(
        default=60, validation_alias="QUERY_TIMEOUT", description="Seconds before a query is interrupted"
    )

    api_host: str = Field(
        default="0.0.0.0", validation_alias="API_HOST", description="Interface the HTTP API binds to"
    )
    api_port: PositiveInt = Field(
        default=8080, validation_alias="API_PORT", description="Port the HTTP API listens on"
    )
    cors_origin: str = Field(
        default="*", validation_alias="CORS_ORIGIN", description="Allowed CORS origin"
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL", description="Root log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("db_type", mode="before")
    @classmethod
    def normalize_db_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or BackendKind.SQLITE.value
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Resolve settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (for tests)

        Raises:
            ConfigurationError: If a variable is malformed
            InvalidBackendError: If DB_TYPE names an unknown backend
        """
        try:
            if environ is None:
                settings = cls()
            else:
                settings = cls.model_validate({k: v for k, v in environ.items() if v.strip()})
        except ValidationError as e:
            raise _configuration_error(e) from e
        return settings._checked()

    def with_overrides(self, **overrides: Any) -> Settings:
        """Return a copy with the non-empty ``overrides`` applied and validated.

        Raises:
            ConfigurationError: If an override is malformed
            InvalidBackendError: If ``db_type`` names an unknown backend
        """
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v not in (None, "")})
        try:
            settings = type(self).model_validate(data)
        except ValidationError as e:
            raise _configuration_error(e) from e
        return settings._checked()

    def _checked(self) -> Settings:
        if self.db_type not in BackendKind.values():
            raise InvalidBackendError(self.db_type)
        return self

    @property
    def llm_configured(self) -> bool:
        """Whether a chat model can be created from these settings."""
        return bool(self.llm_api_key or self.llm_base_url)


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr at the given level.

    stderr keeps stdout free for CLI JSON output and the MCP stdio transport.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
