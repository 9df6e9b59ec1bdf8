"""API routers"""
from fastapi import APIRouter

from .admin import router as admin_router
from .uploads import router as uploads_router

router = APIRouter(prefix="/api/v1")
router.include_router(uploads_router)
router.include_router(admin_router)

__all__ = ["router"]
