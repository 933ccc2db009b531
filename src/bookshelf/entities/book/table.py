"""Book database table model."""

from sqlmodel import Field, SQLModel


class BookTable(SQLModel, table=True):
    """Row of the ``books`` table; ``id`` is assigned by the database."""

    __tablename__ = "books"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(nullable=False)
    author: str = Field(nullable=False)
    year: int = Field(nullable=False)
