"""Category API endpoints."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.auth import AuthenticatedUser
from taskboard.api.rate_limit import default_rate_limit, limiter, write_rate_limit
from taskboard.database import get_db
from taskboard.schemas.base import ApiResponse
from taskboard.schemas.category import (
    CategoryCreate,
    CategoryListResponse,
    CategoryResponse,
    CountCorrectionResponse,
    RecountResponse,
)
from taskboard.services.category_ledger import CategoryLedger

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=ApiResponse[CategoryListResponse])
@limiter.limit(default_rate_limit)
async def list_categories(
    request: Request,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """List the caller's categories, sorted by name."""
    categories = await CategoryLedger(db).list_categories(user.id)
    return ApiResponse(
        data=CategoryListResponse(
            categories=[CategoryResponse.model_validate(c) for c in categories],
        )
    )


@router.post("", response_model=ApiResponse[CategoryResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit(write_rate_limit)
async def create_category(
    request: Request,
    data: CategoryCreate,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Create a new category."""
    category = await CategoryLedger(db).create_category(user.id, data.name, data.color)
    return ApiResponse(
        message="Category created successfully",
        data=CategoryResponse.model_validate(category),
    )


@router.post("/recount", response_model=ApiResponse[RecountResponse])
@limiter.limit(write_rate_limit)
async def recount_categories(
    request: Request,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Recompute task counts of the caller's categories from their tasks."""
    corrections = await CategoryLedger(db).recount_task_counts(user.id)
    return ApiResponse(
        message=f"Repaired {len(corrections)} category count(s)",
        data=RecountResponse(
            corrections=[
                CountCorrectionResponse(
                    category_id=c.category_id,
                    previous=c.previous,
                    actual=c.actual,
                )
                for c in corrections
            ]
        ),
    )


@router.delete("/{category_id}", response_model=ApiResponse[None])
@limiter.limit(write_rate_limit)
async def delete_category(
    request: Request,
    category_id: str,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Delete a category; its tasks are kept without a category."""
    await CategoryLedger(db).delete_category(user.id, category_id)
    return ApiResponse(message="Category deleted successfully")
