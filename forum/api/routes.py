"""Health endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from forum.database import health_check as db_health_check

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Status, database status and timestamp in ISO8601 format
    """
    db_healthy = await db_health_check()
    return {
        "status": "healthy",
        "database": "healthy" if db_healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
