from fastapi import APIRouter

from app.api.v1.quality import router as quality_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(quality_router)
