"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import auth, health, settings, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
router.include_router(users.router, prefix="/users", tags=["users"])
