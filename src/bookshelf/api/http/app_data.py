from dataclasses import dataclass

from src.bookshelf.core.events import BookEventConsumer, EventPublisher
from src.bookshelf.core.services import BookService, DbSessionService, RedisService
from src.bookshelf.core.storage import BookCache, BookStore


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    redis_service: RedisService
    book_store: BookStore
    book_cache: BookCache
    event_publisher: EventPublisher
    book_service: BookService
    event_consumer: BookEventConsumer | None = None
