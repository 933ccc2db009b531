"""Unit tests for the book service coordination of store, cache and events."""

import pytest

from src.bookshelf.core.errors import (
    BookNotFoundError,
    BookValidationError,
    CacheError,
    StoreError,
)
from src.bookshelf.core.services import BookService
from src.bookshelf.core.storage import BookCache, BookStore, InMemoryBookCache
from src.bookshelf.entities.book import Book, BookInput
from tests.fixtures.dummies import RecordingEventPublisher

DUNE = {"title": "Dune", "author": "Herbert", "year": 1965}


class FailingBookCache(BookCache):
    """Cache whose backend is unreachable."""

    def __init__(self) -> None:
        super().__init__(ttl_seconds=3600)

    def get_one(self, book_id):
        raise CacheError("cache down")

    def get_all(self):
        raise CacheError("cache down")

    def put_one(self, book):
        raise CacheError("cache down")

    def delete_one(self, book_id):
        raise CacheError("cache down")

    def health_check(self):
        return False


def _break_store(monkeypatch, store: BookStore) -> None:
    def _fail(*args, **kwargs):
        raise StoreError("store down")

    for name in ("insert", "get_by_id", "list", "update_by_id", "delete_by_id"):
        monkeypatch.setattr(store, name, _fail)


class TestReadYourWrites:
    def test_with_healthy_cache(self, book_service: BookService):
        created = book_service.create(DUNE)
        assert book_service.read_one(created.id) == created

    def test_with_failing_cache(
        self, book_store: BookStore, event_publisher: RecordingEventPublisher
    ):
        service = BookService(book_store, FailingBookCache(), event_publisher)
        created = service.create(DUNE)
        assert service.read_one(created.id) == created

        updated = service.update(created.id, {**DUNE, "author": "F. Herbert"})
        assert service.read_one(created.id) == updated

        service.delete(created.id)
        with pytest.raises(BookNotFoundError):
            service.read_one(created.id)

        page = service.read_many()
        assert page.books == []
        assert not page.from_cache


class TestCreate:
    def test_returns_stored_row_and_publishes(
        self,
        book_service: BookService,
        book_cache: InMemoryBookCache,
        event_publisher: RecordingEventPublisher,
    ):
        created = book_service.create(DUNE)

        assert created == Book(id=1, **DUNE)
        assert book_cache.get_one(1) == created
        assert event_publisher.payloads("book_events") == ["Book created: Dune by Herbert"]

    def test_validation_error_touches_nothing(
        self,
        book_service: BookService,
        book_store: BookStore,
        event_publisher: RecordingEventPublisher,
    ):
        with pytest.raises(BookValidationError) as exc_info:
            book_service.create({**DUNE, "title": ""})

        assert "title is required" in exc_info.value.details
        assert book_store.list() == []
        assert event_publisher.messages == []

    def test_store_failure_surfaces(
        self,
        monkeypatch,
        book_service: BookService,
        book_store: BookStore,
        event_publisher: RecordingEventPublisher,
    ):
        _break_store(monkeypatch, book_store)
        with pytest.raises(StoreError):
            book_service.create(DUNE)
        assert event_publisher.messages == []

    def test_publish_failure_does_not_fail_the_write(
        self,
        book_service: BookService,
        book_store: BookStore,
        book_cache: InMemoryBookCache,
        event_publisher: RecordingEventPublisher,
    ):
        event_publisher.fail_with = ConnectionError("bus down")

        created = book_service.create(DUNE)

        assert book_store.get_by_id(created.id) == created
        assert book_cache.get_one(created.id) == created


class TestReadOne:
    def test_cache_warms_on_miss(
        self,
        monkeypatch,
        book_service: BookService,
        book_store: BookStore,
        book_cache: InMemoryBookCache,
    ):
        stored = book_store.insert(BookInput(**DUNE))
        assert book_cache.get_one(stored.id) is None

        assert book_service.read_one(stored.id) == stored
        assert book_cache.get_one(stored.id) == stored

        _break_store(monkeypatch, book_store)
        assert book_service.read_one(stored.id) == stored

    def test_cache_hit_does_not_touch_store(
        self,
        monkeypatch,
        book_service: BookService,
        book_store: BookStore,
        book_cache: InMemoryBookCache,
    ):
        book_cache.put_one(Book(id=7, **DUNE))
        _break_store(monkeypatch, book_store)
        assert book_service.read_one(7) == Book(id=7, **DUNE)

    def test_missing_book(self, book_service: BookService):
        with pytest.raises(BookNotFoundError):
            book_service.read_one(999)

    def test_store_failure_on_miss_surfaces(
        self, monkeypatch, book_service: BookService, book_store: BookStore
    ):
        _break_store(monkeypatch, book_store)
        with pytest.raises(StoreError):
            book_service.read_one(1)


class TestUpdate:
    def test_rewrites_cache_entry(
        self,
        book_service: BookService,
        book_cache: InMemoryBookCache,
        event_publisher: RecordingEventPublisher,
    ):
        created = book_service.create(DUNE)
        updated = book_service.update(created.id, {**DUNE, "author": "Frank Herbert"})

        assert book_cache.get_one(created.id) == updated
        assert book_service.read_one(created.id).author == "Frank Herbert"
        assert event_publisher.payloads()[-1] == "Book updated: Dune by Frank Herbert"

    def test_keeps_path_id(self, book_service: BookService, book_store: BookStore):
        created = book_service.create(DUNE)
        updated = book_service.update(created.id, {**DUNE, "id": 999, "year": 1966})

        assert updated.id == created.id
        assert updated.year == 1966
        with pytest.raises(BookNotFoundError):
            book_store.get_by_id(999)

    def test_missing_book(
        self, book_service: BookService, event_publisher: RecordingEventPublisher
    ):
        with pytest.raises(BookNotFoundError):
            book_service.update(999, DUNE)
        assert event_publisher.messages == []

    def test_invalid_input_is_checked_before_lookup(self, book_service: BookService):
        with pytest.raises(BookValidationError):
            book_service.update(999, {**DUNE, "year": "not-a-number"})


class TestDelete:
    def test_evicts_cache_entry(
        self,
        book_service: BookService,
        book_cache: InMemoryBookCache,
        event_publisher: RecordingEventPublisher,
    ):
        created = book_service.create(DUNE)
        book_service.delete(created.id)

        assert book_cache.get_one(created.id) is None
        with pytest.raises(BookNotFoundError):
            book_service.read_one(created.id)
        assert event_publisher.payloads()[-1] == f"Book deleted with id: {created.id}"

    def test_missing_book(
        self, book_service: BookService, event_publisher: RecordingEventPublisher
    ):
        with pytest.raises(BookNotFoundError):
            book_service.delete(999)
        assert event_publisher.messages == []

    def test_publish_failure_does_not_fail_the_delete(
        self,
        book_service: BookService,
        book_store: BookStore,
        event_publisher: RecordingEventPublisher,
    ):
        created = book_service.create(DUNE)
        event_publisher.fail_with = ConnectionError("bus down")

        book_service.delete(created.id)

        with pytest.raises(BookNotFoundError):
            book_store.get_by_id(created.id)


def _seed(store: BookStore, count: int) -> list[Book]:
    return [
        store.insert(BookInput(title=f"Book {i}", author="Anon", year=2000 + i))
        for i in range(count)
    ]


class TestReadMany:
    def test_cold_cache_reads_store_and_populates(
        self,
        book_service: BookService,
        book_store: BookStore,
        book_cache: InMemoryBookCache,
    ):
        books = _seed(book_store, 5)

        page = book_service.read_many(limit=2, offset=1)

        assert page.books == books[1:3]
        assert (page.limit, page.offset) == (2, 1)
        assert not page.from_cache
        assert sorted(b.id for b in book_cache.get_all()) == [2, 3]

    def test_empty_store(self, book_service: BookService):
        page = book_service.read_many()
        assert page.books == []
        assert (page.limit, page.offset) == (10, 0)

    def test_negative_window_is_clamped(self, book_service: BookService, book_store):
        _seed(book_store, 3)
        page = book_service.read_many(limit=-3, offset=-1)
        assert (page.limit, page.offset) == (0, 0)

    def test_shortcut_returns_whole_cached_collection(
        self, book_service: BookService, book_store: BookStore
    ):
        _seed(book_store, 3)
        book_service.read_many(limit=2)

        page = book_service.read_many(limit=1, offset=5)

        assert page.from_cache
        assert page.shortcut
        assert sorted(b.id for b in page.books) == [1, 2]

    def test_cache_scan_failure_falls_back_to_store(
        self, book_store: BookStore, event_publisher: RecordingEventPublisher
    ):
        books = _seed(book_store, 2)
        service = BookService(book_store, FailingBookCache(), event_publisher)

        page = service.read_many()

        assert page.books == books
        assert not page.from_cache

    def test_store_failure_surfaces(
        self, monkeypatch, book_service: BookService, book_store: BookStore
    ):
        _break_store(monkeypatch, book_store)
        with pytest.raises(StoreError):
            book_service.read_many()


class TestReadManyPaginate:
    @pytest.fixture
    def list_strategy(self) -> str:
        return "paginate"

    def test_windows_the_cached_collection(
        self, book_service: BookService, book_cache: InMemoryBookCache
    ):
        for book_id in (3, 1, 4, 2):
            book_cache.put_one(Book(id=book_id, title=f"B{book_id}", author="A", year=1))

        page = book_service.read_many(limit=2, offset=1)

        assert [b.id for b in page.books] == [2, 3]
        assert page.from_cache
        assert not page.shortcut


class TestReadManyBypass:
    @pytest.fixture
    def list_strategy(self) -> str:
        return "bypass"

    def test_always_reads_store(
        self,
        book_service: BookService,
        book_store: BookStore,
        book_cache: InMemoryBookCache,
    ):
        book_cache.put_one(Book(id=100, title="Cached only", author="A", year=1))
        books = _seed(book_store, 2)

        page = book_service.read_many()

        assert page.books == books
        assert not page.from_cache


class TestReadManyDefaultLimit:
    @pytest.fixture
    def list_strategy(self) -> str:
        return "bypass"

    @pytest.fixture
    def default_limit(self) -> int:
        return 2

    def test_configured_page_size_applies_without_limit(
        self, book_service: BookService, book_store: BookStore
    ):
        books = _seed(book_store, 5)

        page = book_service.read_many()

        assert book_service.default_limit == 2
        assert page.limit == 2
        assert page.books == books[:2]

    def test_explicit_limit_wins(self, book_service: BookService, book_store: BookStore):
        _seed(book_store, 5)
        assert len(book_service.read_many(limit=4).books) == 4

    def test_negative_default_is_clamped(
        self, book_store: BookStore, book_cache, event_publisher
    ):
        service = BookService(book_store, book_cache, event_publisher, default_limit=-1)
        assert service.default_limit == 0
