from src.bookshelf.core.storage.book_cache import (
    BookCache,
    InMemoryBookCache,
    RedisBookCache,
    book_key,
)
from src.bookshelf.core.storage.book_store import BookStore

__all__ = [
    "BookCache",
    "BookStore",
    "InMemoryBookCache",
    "RedisBookCache",
    "book_key",
]
