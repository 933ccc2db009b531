"""Redis connection service for managing Redis client lifecycle and health checks."""

from typing import Any

import redis
from loguru import logger
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from src.bookshelf.runtime.config.config_data import RedisConfig
from src.bookshelf.runtime.context import get_config


class RedisService:
    """Service for managing Redis connection lifecycle and health checks.

    This service provides a centralized Redis client for the application,
    managing connection pooling, health checks, and graceful shutdown.
    """

    def __init__(self, redis_config: RedisConfig | None = None):
        """Initialize the Redis service with connection pooling."""
        logger.info("Setting up Redis service")
        config = get_config()
        redis_config = redis_config or config.redis

        self._enabled = redis_config.enabled
        self._client: redis.Redis | None = None
        self._sanitized_url = redis_config.sanitized_connection_string

        if not self._enabled:
            logger.info("Redis is disabled, service will not connect")
            return

        logger.info(
            "Initializing Redis client with connection string: {}",
            self._sanitized_url,
        )

        retry = Retry(
            ExponentialBackoff(base=1, cap=10),  # capped at 10s
            retries=3,
        )

        # redis-py has a single socket timeout for reads and writes
        socket_timeout = max(redis_config.read_timeout, redis_config.write_timeout)

        self._client = redis.Redis(
            host=redis_config.host,
            port=redis_config.port,
            db=redis_config.db,
            password=redis_config.password,
            decode_responses=True,
            encoding="utf-8",
            max_connections=redis_config.max_connections,
            socket_connect_timeout=redis_config.dial_timeout,
            socket_timeout=socket_timeout,
            socket_keepalive=True,
            health_check_interval=30,
            retry=retry,
            client_name="bookshelf",
        )

        logger.info(
            "Redis client initialized",
            extra={
                "url": self._sanitized_url,
                "max_connections": redis_config.max_connections,
                "socket_timeout": socket_timeout,
            },
        )

    def get_client(self) -> redis.Redis | None:
        """Get the Redis client instance.

        Returns:
            Redis client if enabled and connected, None otherwise.
        """
        if not self._enabled:
            logger.debug("Redis is disabled, returning None")
            return None

        return self._client

    def health_check(self) -> bool:
        """Perform a health check on the Redis connection.

        Returns:
            True if Redis is healthy and reachable, False otherwise.
        """
        if not self._enabled or not self._client:
            return False

        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.error(
                "Redis health check failed",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            return False

    def get_info(self) -> dict[str, Any] | None:
        """Get Redis server information for monitoring.

        Returns:
            Dictionary with Redis server info, or None if not available.
        """
        if not self._enabled or not self._client:
            return None

        try:
            info = self._client.info()
            return {
                "version": info.get("redis_version"),
                "uptime_seconds": info.get("uptime_in_seconds"),
                "connected_clients": info.get("connected_clients"),
                "used_memory_human": info.get("used_memory_human"),
            }
        except redis.RedisError as e:
            logger.error(
                "Failed to get Redis info",
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            return None

    def close(self) -> None:
        """Close the Redis connection and clean up resources."""
        if self._client:
            try:
                logger.info("Closing Redis connection")
                self._client.close()
                logger.info("Redis connection closed successfully")
            except redis.RedisError as e:
                logger.error(
                    "Error closing Redis connection",
                    extra={
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    },
                )
            finally:
                self._client = None

    @property
    def is_enabled(self) -> bool:
        """Check if Redis service is enabled."""
        return self._enabled

    @property
    def url(self) -> str:
        """Get the (password-masked) Redis connection URL."""
        return self._sanitized_url
