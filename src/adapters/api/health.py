"""Health endpoint reporting whether the database answers."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.adapters.api.envelope import error_response
from src.core.config.settings import settings
from src.infrastructure.database.async_db import check_database_health

router = APIRouter()


@router.get("", summary="Service health")
async def health_check() -> JSONResponse:
    timestamp = datetime.now(timezone.utc).isoformat()
    if not await check_database_health():
        return error_response(
            "API is unhealthy",
            status.HTTP_503_SERVICE_UNAVAILABLE,
            timestamp=timestamp,
            version=settings.VERSION,
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "success",
            "message": "API is healthy",
            "timestamp": timestamp,
            "version": settings.VERSION,
        },
    )
