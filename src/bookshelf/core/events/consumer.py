"""Background consumer of the book events topic."""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from kafka import ConsumerRebalanceListener, KafkaConsumer
from kafka.errors import KafkaError
from loguru import logger

from src.bookshelf.runtime.config.config_data import KafkaConfig


class ConsumerState(str, Enum):
    UNSTARTED = "unstarted"
    SUBSCRIBING = "subscribing"
    RUNNING = "running"
    REBALANCING = "rebalancing"
    STOPPED = "stopped"


class HandlerError(Exception):
    """The message handler raised; the batch stays uncommitted."""


def log_event(payload: str) -> None:
    """Default handler: log the decoded message."""
    logger.info("Received message: {}", payload)


class _StateListener(ConsumerRebalanceListener):
    def __init__(self, owner: BookEventConsumer) -> None:
        self._owner = owner

    def on_partitions_revoked(self, revoked):
        logger.info("Partitions revoked: {}", sorted(str(tp) for tp in revoked))
        self._owner._set_state(ConsumerState.REBALANCING)

    def on_partitions_assigned(self, assigned):
        logger.info("Partitions assigned: {}", sorted(str(tp) for tp in assigned))
        self._owner._set_state(ConsumerState.RUNNING)


class BookEventConsumer:
    """Consumer-group subscriber that hands every message to ``handler``.

    Offsets are committed only after the handler has returned for the whole
    polled batch, so a failing handler sees the same messages again after the
    consumer resubscribes. Transport errors never end the loop; the consumer
    closes, waits ``reconnect_backoff`` seconds and subscribes again until
    :meth:`stop` is called.
    """

    def __init__(
        self,
        kafka_config: KafkaConfig,
        handler: Callable[[str], None] = log_event,
        consumer_factory: Callable[..., Any] = KafkaConsumer,
    ) -> None:
        self._config = kafka_config
        self._handler = handler
        self._consumer_factory = consumer_factory
        self._state = ConsumerState.UNSTARTED
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> ConsumerState:
        return self._state

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _set_state(self, state: ConsumerState) -> None:
        with self._state_lock:
            if self._state == ConsumerState.STOPPED:
                return
            if self._state != state:
                logger.debug("Consumer state {} -> {}", self._state.value, state.value)
            self._state = state

    def start(self) -> None:
        """Run the consume loop on a daemon thread."""
        if self.is_alive:
            return
        self._stop_event.clear()
        with self._state_lock:
            self._state = ConsumerState.UNSTARTED
        self._thread = threading.Thread(
            target=self.run, name="book-events-consumer", daemon=True
        )
        self._thread.start()
        logger.info(
            "Kafka consumer started for topic {} in group {}",
            self._config.topic,
            self._config.consumer_group,
        )

    def stop(self, timeout: float | None = 10.0) -> None:
        """Ask the loop to exit and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        with self._state_lock:
            self._state = ConsumerState.STOPPED
        logger.info("Kafka consumer stopped")

    def _subscribe(self) -> Any:
        self._set_state(ConsumerState.SUBSCRIBING)
        consumer = self._consumer_factory(
            bootstrap_servers=self._config.bootstrap_servers,
            group_id=self._config.consumer_group,
            enable_auto_commit=False,
            auto_offset_reset="earliest",
            value_deserializer=lambda value: value.decode("utf-8", errors="replace"),
        )
        consumer.subscribe(topics=[self._config.topic], listener=_StateListener(self))
        return consumer

    def _consume_batch(self, consumer: Any) -> int:
        batch = consumer.poll(timeout_ms=self._config.poll_timeout_ms)
        if self._state == ConsumerState.SUBSCRIBING and batch:
            self._set_state(ConsumerState.RUNNING)
        if not batch:
            return 0

        handled = 0
        for records in batch.values():
            for record in records:
                try:
                    self._handler(record.value)
                except Exception as e:
                    raise HandlerError(
                        f"Handler failed at {record.topic}[{record.partition}]@{record.offset}: {e}"
                    ) from e
                handled += 1
        consumer.commit()
        return handled

    def run(self) -> None:
        """Consume until :meth:`stop` is called."""
        while not self._stop_event.is_set():
            consumer = None
            try:
                consumer = self._subscribe()
                while not self._stop_event.is_set():
                    self._consume_batch(consumer)
            except KafkaError as e:
                logger.error("Kafka consumer error: {}", e)
            except HandlerError as e:
                logger.error("{}; resubscribing without commit", e)
            except Exception as e:
                logger.exception("Unexpected consumer error, resubscribing: {}", e)
            finally:
                if consumer is not None:
                    self._close(consumer)

            if not self._stop_event.is_set():
                self._set_state(ConsumerState.SUBSCRIBING)
                self._stop_event.wait(self._config.reconnect_backoff)

        with self._state_lock:
            self._state = ConsumerState.STOPPED

    @staticmethod
    def _close(consumer: Any) -> None:
        try:
            consumer.close(autocommit=False)
        except KafkaError as e:
            logger.warning("Error closing Kafka consumer: {}", e)
