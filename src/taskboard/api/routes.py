"""API router aggregation."""

from fastapi import APIRouter

from taskboard.api.tasks import router as tasks_router
from taskboard.api.categories import router as categories_router

router = APIRouter(prefix="/api")

router.include_router(tasks_router)
router.include_router(categories_router)
