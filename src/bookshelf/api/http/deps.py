"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Request

from src.bookshelf.api.http.app_data import ApplicationDependencies
from src.bookshelf.core.services import BookService


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    """Get the application-wide dependency container."""
    return request.app.state.app_dependencies


def get_book_service(request: Request) -> BookService:
    """Get the book service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.book_service
