"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str | None = Field(
        default=None,
        description="Full database URL; overrides the POSTGRES_* parts when set",
    )
    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    name: str = Field(default="books", description="Database name")
    user: str = Field(default="postgres", description="Database username")
    password: str | None = Field(default=None, description="Database password")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string."""
        if self.url:
            return self.url

        if self.password:
            return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"

        return f"postgresql://{self.user}@{self.host}:{self.port}/{self.name}"

    @computed_field
    @property
    def sanitized_connection_string(self) -> str:
        """Connection string safe to log."""
        if self.url:
            from sqlalchemy.engine import make_url

            return make_url(self.url).render_as_string(hide_password=True)
        return f"postgresql://{self.user}:***@{self.host}:{self.port}/{self.name}"

    @property
    def is_sqlite(self) -> bool:
        return self.connection_string.startswith("sqlite")


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=True, description="Enable Redis service")
    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    db: int = Field(default=0, description="Redis logical database")
    expiry_books: int = Field(
        default=3600,
        description="TTL in seconds of cached book documents; <= 0 disables expiry",
    )
    dial_timeout: float = Field(default=10.0, description="Connect timeout in seconds")
    read_timeout: float = Field(default=60.0, description="Read timeout in seconds")
    write_timeout: float = Field(default=120.0, description="Write timeout in seconds")
    max_connections: int = Field(default=20, description="Connection pool size")

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"

    @computed_field
    @property
    def sanitized_connection_string(self) -> str:
        """Connection string safe to log."""
        if self.password:
            return f"redis://:***@{self.host}:{self.port}/{self.db}"
        return self.connection_string


class KafkaConfig(BaseModel):
    """Kafka configuration model."""

    enabled: bool = Field(default=True, description="Publish change events to Kafka")
    consumer_enabled: bool = Field(
        default=True, description="Run the background event consumer"
    )
    host: str = Field(default="localhost", description="Kafka broker host")
    port: int = Field(default=9092, description="Kafka broker port")
    topic: str = Field(default="book_events", description="Change event topic")
    consumer_group: str = Field(
        default="book-events-group", description="Consumer group id"
    )
    max_retries: int = Field(
        default=5, description="Producer retries on transient failures"
    )
    send_timeout: float = Field(
        default=30.0, description="Seconds to wait for a publish acknowledgement"
    )
    poll_timeout_ms: int = Field(default=1000, description="Consumer poll timeout")
    reconnect_backoff: float = Field(
        default=5.0, description="Seconds to wait before resubscribing after an error"
    )

    @computed_field
    @property
    def bootstrap_servers(self) -> str:
        return f"{self.host}:{self.port}"


class BooksConfig(BaseModel):
    """Book service behaviour configuration."""

    list_strategy: Literal["shortcut", "paginate", "bypass"] = Field(
        default="shortcut",
        description=(
            "How GET /books uses the cache: return the whole cached scan, "
            "paginate the cached scan, or always read the store"
        ),
    )
    default_limit: int = Field(
        default=10, ge=0, description="Page size of GET /books when no limit is given"
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="0.0.0.0", description="Application host")
    port: int = Field(default=8080, description="Application port")


class ConfigData(BaseModel):
    """Root configuration model."""

    app: AppConfig = Field(default_factory=AppConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    kafka: KafkaConfig = Field(default_factory=KafkaConfig)
    books: BooksConfig = Field(default_factory=BooksConfig)
