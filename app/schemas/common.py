"""Shared response envelope and pagination schemas."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    """Envelope returned by every successful endpoint."""

    success: bool = Field(default=True, description="Always true for successful responses")
    data: T | None = Field(default=None, description="Endpoint payload")
    message: str = Field(default="Success", description="Human-readable outcome")


class ErrorResponse(CamelModel):
    """Envelope returned by the exception handlers."""

    success: bool = False
    error: str = Field(description="Error category (e.g. Validation Error)")
    message: str = Field(description="Human-readable error message")
    details: Any | None = None
    stack: str | None = Field(default=None, description="Traceback (dev only)")


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
