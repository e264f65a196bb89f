from fastapi import APIRouter

from jobportal.ai.factory import generation_enabled
from jobportal.core.config import settings

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check():
    return {
        "status": "healthy",
        "text_generation": "enabled" if generation_enabled(settings) else "templates",
    }
