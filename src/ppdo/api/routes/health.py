"""Health check endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ppdo.infrastructure.database.connection import get_session
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str


class ReadyResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check - always returns OK if service is running."""
    from ppdo import __version__

    return HealthResponse(
        status="healthy",
        version=__version__,
        database="not_checked",
    )


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(
    session: AsyncSession = Depends(get_session),
) -> ReadyResponse:
    """Readiness check - verifies the database is reachable."""
    checks: dict[str, bool] = {}

    try:
        await session.execute(select(literal(1)))
        checks["database"] = True
    except SQLAlchemyError as e:
        logger.warning("database_health_check_failed", error=str(e))
        checks["database"] = False

    return ReadyResponse(ready=all(checks.values()), checks=checks)
