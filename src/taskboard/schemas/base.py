"""Base schemas and the response envelope."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from taskboard.models.base import utcnow

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(from_attributes=True)


class TimestampMixin(BaseModel):
    """Mixin for models with timestamps."""

    created_at: datetime
    updated_at: datetime


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every successful response."""

    success: bool = True
    message: str | None = None
    data: T | None = None


class ErrorBody(BaseModel):
    code: str
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
    details: Any = None


class ErrorResponse(BaseModel):
    """Envelope for failed requests."""

    success: bool = False
    message: str
    error: ErrorBody
