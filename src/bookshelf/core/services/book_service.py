"""Book service: coordinates the store, the cache and the event publisher.

The store is authoritative. The cache is advisory: read failures fall through
to the store and write failures are logged. Publishing is fire-and-forget for
the caller; a failed publish is logged and never fails the write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from loguru import logger

from src.bookshelf.core.errors import CacheError, PublishError
from src.bookshelf.core.events.messages import (
    book_created_event,
    book_deleted_event,
    book_updated_event,
)
from src.bookshelf.core.events.publisher import EventPublisher
from src.bookshelf.core.storage.book_cache import BookCache
from src.bookshelf.core.storage.book_store import DEFAULT_LIMIT, DEFAULT_OFFSET, BookStore
from src.bookshelf.entities.book import Book, BookInput

ListStrategy = Literal["shortcut", "paginate", "bypass"]


@dataclass
class BookPage:
    """Result of :meth:`BookService.read_many`.

    ``shortcut`` is set when the books are the whole cached collection rather
    than a ``limit``/``offset`` window.
    """

    books: list[Book] = field(default_factory=list)
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET
    from_cache: bool = False
    shortcut: bool = False


class BookService:
    def __init__(
        self,
        store: BookStore,
        cache: BookCache,
        publisher: EventPublisher,
        topic: str = "book_events",
        list_strategy: ListStrategy = "shortcut",
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._store = store
        self._cache = cache
        self._publisher = publisher
        self._topic = topic
        self._list_strategy = list_strategy
        self._default_limit = max(default_limit, 0)

    @property
    def default_limit(self) -> int:
        """Page size used when a listing does not give one."""
        return self._default_limit

    def read_one(self, book_id: int) -> Book:
        """Return the book, preferring the cache and warming it on a miss.

        Raises:
            BookNotFoundError: No such book in the store
            StoreError: The store failed
        """
        try:
            cached = self._cache.get_one(book_id)
        except CacheError as e:
            logger.warning("Cache read failed for book {}: {}", book_id, e)
            cached = None
        if cached is not None:
            logger.debug("Book {} served from cache", book_id)
            return cached

        book = self._store.get_by_id(book_id)
        self._cache_put(book)
        return book

    def read_many(
        self, limit: int | None = None, offset: int = DEFAULT_OFFSET
    ) -> BookPage:
        if limit is None:
            limit = self._default_limit
        limit = max(limit, 0)
        offset = max(offset, 0)

        if self._list_strategy != "bypass":
            try:
                cached = self._cache.get_all()
            except CacheError as e:
                logger.warning("Cache scan failed: {}", e)
                cached = []
            if cached:
                if self._list_strategy == "shortcut":
                    logger.info("Returning {} books from cache", len(cached))
                    return BookPage(cached, limit, offset, from_cache=True, shortcut=True)
                window = sorted(cached, key=lambda b: b.id)[offset : offset + limit]
                return BookPage(window, limit, offset, from_cache=True)

        books = self._store.list(limit=limit, offset=offset)
        if books:
            try:
                self._cache.put_many(books)
            except CacheError as e:
                logger.warning("Failed to cache books: {}", e)
        return BookPage(books, limit, offset)

    def create(self, data: Any) -> Book:
        """Validate ``data``, insert it and announce the new book.

        Raises:
            BookValidationError: Missing or mistyped fields
            StoreError: The store failed
        """
        book_input = BookInput.parse(data)
        book = self._store.insert(book_input)
        self._publish(book_created_event(book))
        self._cache_put(book)
        return book

    def update(self, book_id: int, data: Any) -> Book:
        """Overwrite the book at ``book_id``; any id in ``data`` is ignored."""
        book_input = BookInput.parse(data)
        self._store.get_by_id(book_id)
        book = self._store.update_by_id(book_id, book_input)
        self._publish(book_updated_event(book))
        self._cache_put(book)
        return book

    def delete(self, book_id: int) -> None:
        self._store.get_by_id(book_id)
        self._store.delete_by_id(book_id)
        self._publish(book_deleted_event(book_id))
        try:
            self._cache.delete_one(book_id)
        except CacheError as e:
            logger.warning("Failed to evict book {} from cache: {}", book_id, e)

    def _cache_put(self, book: Book) -> None:
        try:
            self._cache.put_one(book)
        except CacheError as e:
            logger.warning("Failed to cache book {}: {}", book.id, e)

    def _publish(self, payload: str) -> None:
        try:
            self._publisher.publish(self._topic, payload)
        except PublishError as e:
            logger.error("Failed to publish event to {}: {}", self._topic, e)
