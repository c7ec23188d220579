"""Category schemas."""

from pydantic import Field, field_validator

from taskboard.schemas.base import BaseSchema, TimestampMixin

HEX_COLOR_PATTERN = r"^#([0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})$"


class CategoryCreate(BaseSchema):
    """Schema for creating a category."""

    name: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., pattern=HEX_COLOR_PATTERN)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class CategorySummary(BaseSchema):
    """Category fields embedded in task responses."""

    id: str
    name: str
    color: str


class CategoryResponse(TimestampMixin, BaseSchema):
    """Schema for category responses."""

    id: str
    name: str
    color: str
    task_count: int


class CategoryListResponse(BaseSchema):
    categories: list[CategoryResponse]


class CountCorrectionResponse(BaseSchema):
    category_id: str
    previous: int
    actual: int


class RecountResponse(BaseSchema):
    corrections: list[CountCorrectionResponse]
