"""Book API router with CRUD operations."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from loguru import logger
from starlette.responses import JSONResponse

from src.bookshelf.api.http.deps import get_book_service
from src.bookshelf.core.errors import BookNotFoundError, StoreError
from src.bookshelf.core.services import BookService
from src.bookshelf.core.storage.book_store import DEFAULT_OFFSET

router = APIRouter(prefix="/books", tags=["books"])


def _parse_count(raw: str | None, default: int) -> int:
    """Parse a limit/offset query value; garbage falls back to ``default``."""
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(value, 0)


def _parse_book_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        # A non-numeric id can never name a stored book
        raise BookNotFoundError(raw) from None


def _server_error(message: str, exc: StoreError) -> JSONResponse:
    logger.error("{}: {}", message, exc)
    return JSONResponse(status_code=500, content={"error": message})


@router.get("", response_model=None)
def list_books(
    limit: str | None = Query(default=None),
    offset: str | None = Query(default=None),
    service: BookService = Depends(get_book_service),
) -> dict[str, Any] | list[dict[str, Any]] | JSONResponse:
    """List books, from the cache when it holds any."""
    page_limit = _parse_count(limit, service.default_limit)
    page_offset = _parse_count(offset, DEFAULT_OFFSET)
    try:
        page = service.read_many(limit=page_limit, offset=page_offset)
    except StoreError as e:
        return _server_error("Error fetching books", e)

    books = [book.model_dump() for book in page.books]
    if page.shortcut:
        return books
    return {"limit": page.limit, "offset": page.offset, "books": books}


@router.get("/{book_id}", response_model=None)
def get_book(
    book_id: str,
    service: BookService = Depends(get_book_service),
) -> dict[str, Any] | JSONResponse:
    """Get a book by ID."""
    try:
        return service.read_one(_parse_book_id(book_id)).model_dump()
    except StoreError as e:
        return _server_error("Error fetching book", e)


@router.post("", status_code=201, response_model=None)
def create_book(
    payload: Any = Body(default=None),
    service: BookService = Depends(get_book_service),
) -> dict[str, Any] | JSONResponse:
    """Create a new book."""
    try:
        book = service.create(payload)
    except StoreError as e:
        return _server_error("Error creating book", e)
    return {"message": "Book created successfully", "book": book.model_dump()}


@router.put("/{book_id}", response_model=None)
def update_book(
    book_id: str,
    payload: Any = Body(default=None),
    service: BookService = Depends(get_book_service),
) -> dict[str, Any] | JSONResponse:
    """Update a book; the path id wins over any id in the body."""
    try:
        book = service.update(_parse_book_id(book_id), payload)
    except StoreError as e:
        return _server_error("Error updating book", e)
    return {"message": "Book updated successfully", "book": book.model_dump()}


@router.delete("/{book_id}", response_model=None)
def delete_book(
    book_id: str,
    service: BookService = Depends(get_book_service),
) -> dict[str, str] | JSONResponse:
    """Delete a book."""
    try:
        service.delete(_parse_book_id(book_id))
    except StoreError as e:
        return _server_error("Error deleting book", e)
    return {"message": "Book deleted"}
