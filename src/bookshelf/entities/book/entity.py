"""Entity: Book."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from src.bookshelf.core.errors import BookValidationError


class Book(BaseModel):
    """Book entity as stored, cached and returned by the API.

    The JSON form of this model (``model_dump_json``) is exactly what the cache
    holds under ``BOOKS_ID:<id>``.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Store-assigned identifier")
    title: str = Field(description="Title")
    author: str = Field(description="Author")
    year: int = Field(description="Publication year")


class BookInput(BaseModel):
    """Client-supplied book fields for create and update.

    Any ``id`` in the payload is ignored; the store assigns ids on create and
    the path id wins on update.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, strict=True, description="Non-empty title")
    author: str = Field(min_length=1, strict=True, description="Non-empty author")
    year: int = Field(gt=0, strict=True, description="Positive publication year")

    @classmethod
    def parse(cls, data: Any) -> "BookInput":
        """Validate raw request data, raising ``BookValidationError`` on failure."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise BookValidationError(describe_validation_errors(e.errors())) from e


def _format_error(error: dict[str, Any]) -> str:
    loc = error.get("loc") or ()
    field = ".".join(str(part) for part in loc if part != "body") or "body"
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}

    if kind in ("missing", "string_too_short"):
        return f"{field} is required"
    if kind == "string_type":
        return f"{field} must be a string"
    if kind in ("int_type", "int_parsing", "int_from_float"):
        return f"{field} must be a valid number"
    if kind == "greater_than":
        return f"{field} must be greater than {ctx.get('gt')}"
    if kind in ("model_type", "model_attributes_type", "dict_type"):
        return "request body must be a JSON object"
    if kind == "json_invalid":
        return "request body must be valid JSON"
    return f"{field} is invalid"


def describe_validation_errors(errors: list[dict[str, Any]]) -> list[str]:
    """Turn pydantic error dicts into human field-level messages."""
    return [_format_error(error) for error in errors]
