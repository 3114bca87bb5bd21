"""Liveness, readiness and database health probes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from payroll_admin import __version__
from payroll_admin.api.dependencies import DbSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthReport(BaseModel):
    status: str
    version: str
    database: str
    checked_at: datetime


@router.get(
    "/health",
    response_model=HealthReport,
    responses={503: {"model": HealthReport}},
)
async def health(db: DbSession, response: Response) -> HealthReport:
    """Report service health; 503 while the database is unreachable."""
    try:
        await db.execute(text("SELECT 1"))
        database = "up"
    except SQLAlchemyError:
        logger.exception("Database probe failed")
        database = "down"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthReport(
        status="ok" if database == "up" else "degraded",
        version=__version__,
        database=database,
        checked_at=datetime.now(timezone.utc),
    )


@router.get("/ready")
async def ready() -> dict[str, str]:
    return {"status": "ready"}


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "alive"}
