"""Book cache interface and implementations.

Books are cached as JSON documents under ``BOOKS_ID:<id>``. Redis (with the
RedisJSON module) is the primary backend; the in-memory backend is used when
Redis is disabled.
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from typing import Any

import redis
from loguru import logger
from pydantic import ValidationError

from src.bookshelf.core.errors import CacheError
from src.bookshelf.entities.book import Book

KEY_PREFIX = "BOOKS_ID"


def book_key(book_id: int | str) -> str:
    """Cache key of the book with ``book_id``."""
    return f"{KEY_PREFIX}:{book_id}"


def decode_book(document: Any) -> Book:
    """Decode a cached document into a Book through a JSON round-trip.

    Accepts the already-parsed object returned by ``JSON.GET`` or the raw
    JSON text.
    """
    if isinstance(document, (bytes, bytearray)):
        document = document.decode("utf-8")
    if not isinstance(document, str):
        document = json.dumps(document)
    return Book.model_validate_json(document)


class BookCache(ABC):
    """Abstract interface for book cache backends."""

    def __init__(self, ttl_seconds: int) -> None:
        self._ttl = ttl_seconds

    @abstractmethod
    def get_one(self, book_id: int) -> Book | None:
        """Fetch one cached book.

        Returns:
            The book, or None on a miss

        Raises:
            CacheError: If the backend fails or the document cannot be decoded
        """

    @abstractmethod
    def get_all(self) -> list[Book]:
        """Return every cached book, in no particular order.

        Entries that cannot be decoded are logged and skipped.

        Raises:
            CacheError: If the key scan fails
        """

    @abstractmethod
    def put_one(self, book: Book) -> None:
        """Write the whole document for ``book`` with the configured TTL."""

    def put_many(self, books: list[Book]) -> None:
        """Write each book in turn, stopping at the first failure."""
        for book in books:
            try:
                self.put_one(book)
            except CacheError:
                logger.error("Error storing book {} in cache", book.id)
                raise
        logger.info("Cached {} books", len(books))

    @abstractmethod
    def delete_one(self, book_id: int) -> None:
        """Remove the cached book if present; a no-op otherwise."""

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the cache backend is reachable."""


class InMemoryBookCache(BookCache):
    """Process-local book cache with TTL support."""

    def __init__(self, ttl_seconds: int) -> None:
        super().__init__(ttl_seconds)
        self._data: dict[str, dict[str, Any]] = {}

    def _live_entry(self, key: str) -> dict[str, Any] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at = entry["expires_at"]
        if expires_at is not None and time.time() > expires_at:
            self._data.pop(key, None)
            return None
        return entry

    def get_one(self, book_id: int) -> Book | None:
        entry = self._live_entry(book_key(book_id))
        if entry is None:
            return None
        try:
            return decode_book(entry["data"])
        except ValidationError as e:
            raise CacheError(f"Invalid cached document for book {book_id}: {e}") from e

    def get_all(self) -> list[Book]:
        books = []
        for key in list(self._data):
            if not key.startswith(f"{KEY_PREFIX}:"):
                continue
            entry = self._live_entry(key)
            if entry is None:
                continue
            try:
                books.append(decode_book(entry["data"]))
            except ValidationError as e:
                logger.error("Error decoding cached book for key {}: {}", key, e)
        return books

    def put_one(self, book: Book) -> None:
        expires_at = time.time() + self._ttl if self._ttl > 0 else None
        self._data[book_key(book.id)] = {
            "data": book.model_dump_json(),
            "expires_at": expires_at,
        }
        logger.debug("Book cached successfully with ID: {}", book.id)

    def delete_one(self, book_id: int) -> None:
        self._data.pop(book_key(book_id), None)

    def health_check(self) -> bool:
        """In-memory cache is always available."""
        return True


class RedisBookCache(BookCache):
    """RedisJSON-backed book cache."""

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int) -> None:
        super().__init__(ttl_seconds)
        self._redis = redis_client

    def get_one(self, book_id: int) -> Book | None:
        key = book_key(book_id)
        try:
            document = self._redis.json().get(key)
        except redis.RedisError as e:
            raise CacheError(f"Failed to JSONGet for {key}: {e}") from e

        if document is None:
            return None
        try:
            return decode_book(document)
        except ValidationError as e:
            raise CacheError(f"Retrieved data for key {key} is not a valid book: {e}") from e

    def get_all(self) -> list[Book]:
        try:
            keys = list(self._redis.scan_iter(match=f"{KEY_PREFIX}:*", count=100))
        except redis.RedisError as e:
            raise CacheError(f"Error iterating over Redis keys: {e}") from e

        books = []
        for key in keys:
            try:
                document = self._redis.json().get(key)
            except redis.RedisError as e:
                logger.error("Error fetching book data from Redis for key {}: {}", key, e)
                continue
            if document is None:
                # Expired between the scan and the read
                continue
            try:
                books.append(decode_book(document))
            except ValidationError as e:
                logger.error("Retrieved data for key {} is not a valid book: {}", key, e)
        return books

    def put_one(self, book: Book) -> None:
        key = book_key(book.id)
        # Document and TTL are applied together in one MULTI/EXEC
        pipe = self._redis.pipeline(transaction=True)
        try:
            pipe.json().set(key, "$", book.model_dump())
            if self._ttl > 0:
                pipe.expire(key, self._ttl)
            else:
                pipe.persist(key)
            pipe.execute()
        except redis.RedisError as e:
            raise CacheError(f"Failed to set data for the key - {key}: {e}") from e
        logger.debug("Book cached successfully with ID: {}", book.id)

    def delete_one(self, book_id: int) -> None:
        key = book_key(book_id)
        try:
            removed = self._redis.delete(key)
        except redis.RedisError as e:
            raise CacheError(f"Error deleting book from cache for key {key}: {e}") from e
        if removed:
            logger.debug("Book removed from cache with ID: {}", book_id)
        else:
            logger.debug("Key {} not found in Redis", key)

    def health_check(self) -> bool:
        try:
            return bool(self._redis.ping())
        except redis.RedisError:
            return False
