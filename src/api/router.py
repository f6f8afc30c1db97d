from __future__ import annotations

from fastapi import APIRouter

from src.api.achievements import router as achievements_router
from src.api.health import router as health_router
from src.api.pipeline import router as pipeline_router
from src.api.targets import router as targets_router
from src.api.users import router as users_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(targets_router)
api_router.include_router(achievements_router)
api_router.include_router(pipeline_router)
api_router.include_router(users_router)
