"""Entities, one package per entity (``entity``, ``table`` and ``repository``)."""

from .book import Book, BookInput, BookRepository, BookTable

__all__ = [
    "Book",
    "BookInput",
    "BookRepository",
    "BookTable",
]
