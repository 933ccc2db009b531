"""Book repository."""

from sqlmodel import Session, select

from .entity import Book, BookInput
from .table import BookTable


class BookRepository:
    """Data-access layer for books bound to one session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, book: BookInput) -> Book:
        row = BookTable(title=book.title, author=book.author, year=book.year)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Book.model_validate(row, from_attributes=True)

    def get(self, book_id: int) -> Book | None:
        row = self._session.get(BookTable, book_id)
        if row is None:
            return None
        return Book.model_validate(row, from_attributes=True)

    def list_page(self, limit: int, offset: int) -> list[Book]:
        statement = select(BookTable).order_by(BookTable.id).offset(offset).limit(limit)
        rows = self._session.exec(statement).all()
        return [Book.model_validate(row, from_attributes=True) for row in rows]

    def update(self, book_id: int, book: BookInput) -> Book | None:
        row = self._session.get(BookTable, book_id)
        if row is None:
            return None
        row.title = book.title
        row.author = book.author
        row.year = book.year
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Book.model_validate(row, from_attributes=True)

    def delete(self, book_id: int) -> bool:
        row = self._session.get(BookTable, book_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
