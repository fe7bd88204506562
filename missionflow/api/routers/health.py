"""Health check endpoints for missionflow.

- /health: Basic health check with database connectivity
- /health/live: Liveness probe (is the app running?)
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from missionflow import __version__
from missionflow.api.deps import get_db
from missionflow.common.logger import get_logger

router = APIRouter(tags=["health"])
logger = get_logger("health")


def check_database(db: Session) -> Dict[str, Any]:
    """Check database connectivity."""
    try:
        db.execute(text("SELECT 1")).fetchone()
        return {"status": "healthy"}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    database = check_database(db)
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {"database": database},
    }
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )


@router.get("/health/live")
async def liveness():
    return {"status": "alive"}
