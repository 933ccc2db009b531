"""Record store: durable CRUD over books.

Wraps :class:`BookRepository` in one transaction per operation and translates
backend failures into the book service error taxonomy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from src.bookshelf.core.errors import BookNotFoundError, StoreError
from src.bookshelf.entities.book import Book, BookInput, BookRepository

if TYPE_CHECKING:
    from src.bookshelf.core.services.database.db_session import DbSessionService

DEFAULT_LIMIT = 10
DEFAULT_OFFSET = 0


class BookStore:
    """Authoritative book storage backed by the relational database."""

    def __init__(self, database_service: DbSessionService) -> None:
        self._db = database_service

    def create_schema(self) -> None:
        """Create the books table if it does not exist yet."""
        try:
            self._db.create_all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create schema: {e}") from e

    def insert(self, book: BookInput) -> Book:
        try:
            with self._db.session_scope() as session:
                created = BookRepository(session).create(book)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to insert book: {e}") from e
        logger.info("Inserted book with id: {}", created.id)
        return created

    def get_by_id(self, book_id: int) -> Book:
        try:
            with self._db.session_scope() as session:
                book = BookRepository(session).get(book_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to fetch book {book_id}: {e}") from e
        if book is None:
            raise BookNotFoundError(book_id)
        return book

    def list(self, limit: int = DEFAULT_LIMIT, offset: int = DEFAULT_OFFSET) -> list[Book]:
        """Return at most ``limit`` books from ``offset`` in insertion order."""
        limit = max(limit, 0)
        offset = max(offset, 0)
        try:
            with self._db.session_scope() as session:
                return BookRepository(session).list_page(limit=limit, offset=offset)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list books: {e}") from e

    def update_by_id(self, book_id: int, book: BookInput) -> Book:
        try:
            with self._db.session_scope() as session:
                updated = BookRepository(session).update(book_id, book)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update book {book_id}: {e}") from e
        if updated is None:
            raise BookNotFoundError(book_id)
        logger.info("Updated book with id: {}", book_id)
        return updated

    def delete_by_id(self, book_id: int) -> None:
        try:
            with self._db.session_scope() as session:
                deleted = BookRepository(session).delete(book_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete book {book_id}: {e}") from e
        if not deleted:
            raise BookNotFoundError(book_id)
        logger.info("Deleted book with id: {}", book_id)
