from fastapi import APIRouter

from sleeptrack.core.config import settings
from sleeptrack.core.db import database

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "db": database.initialized,
    }
