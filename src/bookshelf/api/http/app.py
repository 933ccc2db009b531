"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from loguru import logger
from starlette.responses import JSONResponse

from src.bookshelf.api.http.app_data import ApplicationDependencies
from src.bookshelf.api.http.routers.health import router as health_router
from src.bookshelf.api.http.routers.service.book import router as book_router
from src.bookshelf.api.utils.app_startup import configure_logging
from src.bookshelf.core.errors import BookNotFoundError, BookValidationError, StoreError
from src.bookshelf.core.events import (
    BookEventConsumer,
    EventPublisher,
    KafkaEventPublisher,
    LoggingEventPublisher,
)
from src.bookshelf.core.services import BookService, DbSessionService, RedisService
from src.bookshelf.core.storage import (
    BookCache,
    BookStore,
    InMemoryBookCache,
    RedisBookCache,
)
from src.bookshelf.entities.book.entity import describe_validation_errors
from src.bookshelf.runtime.config.config_data import ConfigData
from src.bookshelf.runtime.context import get_config

configure_logging()


def build_dependencies(config: ConfigData) -> ApplicationDependencies:
    """Create the process-wide connection handles and the book service."""
    database_service = DbSessionService(config.database)
    book_store = BookStore(database_service)
    book_store.create_schema()

    redis_service = RedisService(config.redis)
    redis_client = redis_service.get_client()
    book_cache: BookCache
    if redis_client is not None:
        book_cache = RedisBookCache(redis_client, config.redis.expiry_books)
    else:
        logger.info("Redis disabled; caching books in memory")
        book_cache = InMemoryBookCache(config.redis.expiry_books)

    event_publisher: EventPublisher
    if config.kafka.enabled:
        event_publisher = KafkaEventPublisher(config.kafka)
    else:
        logger.info("Kafka disabled; change events are only logged")
        event_publisher = LoggingEventPublisher()

    event_consumer = None
    if config.kafka.enabled and config.kafka.consumer_enabled:
        event_consumer = BookEventConsumer(config.kafka)

    book_service = BookService(
        book_store,
        book_cache,
        event_publisher,
        topic=config.kafka.topic,
        list_strategy=config.books.list_strategy,
        default_limit=config.books.default_limit,
    )
    return ApplicationDependencies(
        database_service=database_service,
        redis_service=redis_service,
        book_store=book_store,
        book_cache=book_cache,
        event_publisher=event_publisher,
        book_service=book_service,
        event_consumer=event_consumer,
    )


def startup() -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)
    deps = build_dependencies(config)
    app.state.app_dependencies = deps
    if deps.event_consumer is not None:
        deps.event_consumer.start()


def shutdown() -> None:
    logger.info("Shutting down application")
    deps: ApplicationDependencies | None = getattr(app.state, "app_dependencies", None)
    if deps is None:
        return
    if deps.event_consumer is not None:
        deps.event_consumer.stop()
    deps.event_publisher.close()
    deps.redis_service.close()
    deps.database_service.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup()
    try:
        yield
    finally:
        shutdown()


app = FastAPI(
    title="Bookshelf",
    lifespan=lifespan,
    docs_url=None if get_config().app.environment == "production" else "/docs",
    redoc_url=None if get_config().app.environment == "production" else "/redoc",
)

__all__ = ["app", "build_dependencies", "startup", "shutdown"]


# --- Error mapping ---
@app.exception_handler(BookValidationError)
async def book_validation_error_handler(request: Request, exc: BookValidationError):
    return JSONResponse(
        status_code=400, content={"error": "Invalid input", "details": exc.details}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid input",
            "details": describe_validation_errors(list(exc.errors())),
        },
    )


@app.exception_handler(BookNotFoundError)
async def book_not_found_handler(request: Request, exc: BookNotFoundError):
    return JSONResponse(status_code=404, content={"error": "Book not found"})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Unhandled store error: {}", exc)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }

    start = time.perf_counter()
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"error": "Internal Server Error"},
                headers={"X-Request-ID": request_id},
            )

        duration_ms = (time.perf_counter() - start) * 1000
        logger.bind(
            status_code=response.status_code,
            duration_ms=round(duration_ms, 1),
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


# --- Router registration ---
app.include_router(health_router)
app.include_router(book_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,  # Request logging middleware covers access logs
    )
