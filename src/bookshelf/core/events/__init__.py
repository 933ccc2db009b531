from src.bookshelf.core.events.consumer import (
    BookEventConsumer,
    ConsumerState,
    log_event,
)
from src.bookshelf.core.events.messages import (
    book_created_event,
    book_deleted_event,
    book_updated_event,
)
from src.bookshelf.core.events.publisher import (
    EventPublisher,
    KafkaEventPublisher,
    LoggingEventPublisher,
)

__all__ = [
    "BookEventConsumer",
    "ConsumerState",
    "EventPublisher",
    "KafkaEventPublisher",
    "LoggingEventPublisher",
    "book_created_event",
    "book_deleted_event",
    "book_updated_event",
    "log_event",
]
