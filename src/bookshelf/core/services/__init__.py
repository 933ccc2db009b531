"""Core services exports."""

from .book_service import BookPage, BookService
from .database.db_session import DbSessionService
from .redis_service import RedisService

__all__ = [
    "BookPage",
    "BookService",
    "DbSessionService",
    "RedisService",
]
