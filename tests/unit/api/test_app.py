"""Tests for wiring the application dependencies from configuration."""

from collections.abc import Generator

import pytest

from src.bookshelf.api.http.app import build_dependencies
from src.bookshelf.api.http.app_data import ApplicationDependencies
from src.bookshelf.core.events import LoggingEventPublisher
from src.bookshelf.core.storage import InMemoryBookCache
from src.bookshelf.runtime.config.config_data import (
    BooksConfig,
    ConfigData,
    DatabaseConfig,
    KafkaConfig,
    RedisConfig,
)


@pytest.fixture
def standalone_deps() -> Generator[ApplicationDependencies]:
    """Dependencies for a run with neither Redis nor Kafka."""
    deps = build_dependencies(
        ConfigData(
            database=DatabaseConfig(url="sqlite://"),
            redis=RedisConfig(enabled=False),
            kafka=KafkaConfig(enabled=False),
            books=BooksConfig(list_strategy="bypass", default_limit=4),
        )
    )
    yield deps
    deps.database_service.close()


class TestBuildDependencies:
    def test_disabled_backends_use_local_stand_ins(
        self, standalone_deps: ApplicationDependencies
    ):
        assert isinstance(standalone_deps.book_cache, InMemoryBookCache)
        assert isinstance(standalone_deps.event_publisher, LoggingEventPublisher)
        assert standalone_deps.event_consumer is None

    def test_writes_without_kafka_keep_no_events(
        self, standalone_deps: ApplicationDependencies
    ):
        service = standalone_deps.book_service
        for i in range(20):
            created = service.create({"title": f"Book {i}", "author": "Anon", "year": 2000})
            service.delete(created.id)

        assert vars(standalone_deps.event_publisher) == {}

    def test_configured_page_size_reaches_the_service(
        self, standalone_deps: ApplicationDependencies
    ):
        service = standalone_deps.book_service
        for i in range(6):
            service.create({"title": f"Book {i}", "author": "Anon", "year": 2000})

        page = service.read_many()

        assert service.default_limit == 4
        assert len(page.books) == 4
