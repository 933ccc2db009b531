"""Change notification payloads written to the book events topic."""

from src.bookshelf.entities.book import Book


def book_created_event(book: Book) -> str:
    return f"Book created: {book.title} by {book.author}"


def book_updated_event(book: Book) -> str:
    return f"Book updated: {book.title} by {book.author}"


def book_deleted_event(book_id: int) -> str:
    return f"Book deleted with id: {book_id}"
