"""Database initialization script."""

from src.bookshelf.core.services.database.db_session import DbSessionService
from src.bookshelf.core.storage.book_store import BookStore


def init_db() -> None:
    """Create the books table if it does not exist yet."""
    database_service = DbSessionService()
    try:
        BookStore(database_service).create_schema()
    finally:
        database_service.close()


if __name__ == "__main__":
    init_db()
