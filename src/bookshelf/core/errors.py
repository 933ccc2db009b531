"""Error taxonomy of the book service.

Only ``BookValidationError``, ``BookNotFoundError`` and ``StoreError`` reach
callers of :class:`~src.bookshelf.core.services.book_service.BookService`.
``CacheError`` and ``PublishError`` are advisory and are logged by the service.
"""


class BookshelfError(Exception):
    """Base class for every error raised by the book service."""


class BookValidationError(BookshelfError):
    """The book payload is missing fields or carries mistyped values."""

    def __init__(self, details: list[str]):
        self.details = details
        super().__init__("Invalid input: " + "; ".join(details))


class BookNotFoundError(BookshelfError):
    """No book with the requested id exists in the store."""

    def __init__(self, book_id: int):
        self.book_id = book_id
        super().__init__(f"Book not found: {book_id}")


class StoreError(BookshelfError):
    """The relational store failed (unreachable backend or constraint violation)."""


class CacheError(BookshelfError):
    """The cache backend failed."""


class PublishError(BookshelfError):
    """A change event could not be delivered to the bus."""
