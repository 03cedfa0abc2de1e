"""Centralized configuration for redipress using Pydantic Settings."""

from dataclasses import dataclass

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class IndexConfig:
    """Read-only view of the settings the index pipeline depends on."""

    index_name: str
    persist_index: bool = False
    language: str = "finnish"


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every value can be set with a ``REDIPRESS_`` prefixed environment variable,
    e.g. ``REDIPRESS_INDEX_NAME=posts`` or ``REDIPRESS_PERSIST_INDEX=true``.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIPRESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Index
    index_name: str = Field(default="posts", description="RediSearch index name, unique within the database")
    persist_index: bool = Field(default=False, description="Write the index to disk after every write action")
    language: str = Field(default="finnish", description="Stemming language passed with every added document")
    index_all_workers: int = Field(default=1, ge=1, description="Worker threads used by a full reindex")

    # Redis connection
    redis_host: str = Field(default="127.0.0.1", description="Redis server hostname")
    redis_port: int = Field(default=6379, ge=1, le=65535, description="Redis server port")
    redis_password: str | None = Field(default=None, description="Leave empty when Redis is not password protected")
    redis_db: int = Field(default=0, ge=0, description="Redis logical database number")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("index_name")
    @classmethod
    def _check_index_name(cls, value: str) -> str:
        value = value.strip()
        if not value or any(char.isspace() for char in value):
            raise ValueError("index_name must be a non-empty string without whitespace")
        return value

    @field_validator("redis_password", mode="before")
    @classmethod
    def _blank_password_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def index_config(self) -> IndexConfig:
        """Return the immutable index configuration handed to the pipeline."""
        return IndexConfig(
            index_name=self.index_name,
            persist_index=self.persist_index,
            language=self.language,
        )
