"""Change event publishers."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from kafka import KafkaProducer
from kafka.errors import KafkaError
from loguru import logger

from src.bookshelf.core.errors import PublishError
from src.bookshelf.runtime.config.config_data import KafkaConfig


class EventPublisher(ABC):
    """Abstract interface for change event publishers."""

    @abstractmethod
    def publish(self, topic: str, payload: str) -> None:
        """Write one message to ``topic``.

        Raises:
            PublishError: If the message could not be delivered
        """

    def health_check(self) -> bool:
        return True

    def close(self) -> None:
        """Flush pending messages and release the transport."""


class KafkaEventPublisher(EventPublisher):
    """Publishes UTF-8 payloads to Kafka through one shared producer.

    The producer is created on first publish and reused by every thread. After
    a failed creation, publishes fail fast for ``reconnect_backoff`` seconds
    before another attempt is made.
    """

    def __init__(
        self,
        kafka_config: KafkaConfig,
        producer_factory: Callable[..., Any] = KafkaProducer,
    ) -> None:
        self._config = kafka_config
        self._producer_factory = producer_factory
        self._producer: Any | None = None
        self._lock = threading.Lock()
        self._retry_at = 0.0

    def _get_producer(self) -> Any:
        producer = self._producer
        if producer is not None:
            return producer
        if time.monotonic() < self._retry_at:
            raise PublishError("Kafka producer unavailable; waiting before reconnecting")

        # Created outside the lock; the first producer stored wins
        logger.info("Creating Kafka producer for {}", self._config.bootstrap_servers)
        try:
            producer = self._producer_factory(
                bootstrap_servers=self._config.bootstrap_servers,
                acks="all",
                retries=self._config.max_retries,
                value_serializer=lambda value: value.encode("utf-8"),
            )
        except KafkaError as e:
            self._retry_at = time.monotonic() + self._config.reconnect_backoff
            raise PublishError(f"Failed to create Kafka producer: {e}") from e

        with self._lock:
            if self._producer is None:
                self._producer = producer
                return producer
            current = self._producer
        logger.debug("Discarding duplicate Kafka producer")
        producer.close()
        return current

    def publish(self, topic: str, payload: str) -> None:
        producer = self._get_producer()
        try:
            metadata = producer.send(topic, value=payload).get(
                timeout=self._config.send_timeout
            )
        except KafkaError as e:
            raise PublishError(f"Failed to publish message to {topic}: {e}") from e
        logger.info(
            "Message sent to partition {} at offset {}",
            getattr(metadata, "partition", None),
            getattr(metadata, "offset", None),
        )

    def health_check(self) -> bool:
        try:
            return bool(self._get_producer().bootstrap_connected())
        except PublishError:
            return False

    def close(self) -> None:
        with self._lock:
            producer, self._producer = self._producer, None
        if producer is None:
            return
        logger.info("Closing Kafka producer")
        try:
            producer.flush(timeout=self._config.send_timeout)
        except KafkaError as e:
            logger.error("Error flushing Kafka producer: {}", e)
        finally:
            producer.close()


class LoggingEventPublisher(EventPublisher):
    """Stands in for the bus when Kafka is disabled; messages are logged, not kept."""

    def publish(self, topic: str, payload: str) -> None:
        logger.info("Event bus disabled, dropping message for {}: {}", topic, payload)
