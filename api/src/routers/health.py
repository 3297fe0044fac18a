"""
Health Router

Liveness and readiness probes.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from src.core.database import DbSession
from src.models.contracts.health import BasicHealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=BasicHealthResponse)
async def health() -> BasicHealthResponse:
    """Liveness check."""
    return BasicHealthResponse(timestamp=datetime.now(timezone.utc).isoformat())


@router.get("/ready", response_model=ReadinessResponse)
async def ready(db: DbSession, response: Response) -> ReadinessResponse:
    """Readiness check: the database must answer a trivial query."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="unavailable", database=False, message=str(e))
    return ReadinessResponse(status="ready", database=True)
