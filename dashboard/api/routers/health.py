"""Health check endpoints for the dashboard service."""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from dashboard import __version__
from dashboard.api.deps import get_database
from dashboard.db.session import Database

router = APIRouter(tags=["health"])


def check_database(database: Database) -> Dict[str, Any]:
    """Check database connectivity."""
    try:
        with database.session() as db:
            db.execute(text("SELECT 1")).fetchone()
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


@router.get("/health")
def health_check(database: Database = Depends(get_database)):
    checks = {"database": check_database(database)}
    healthy = all(c["status"] == "healthy" for c in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "version": __version__,
            "timestamp": datetime.utcnow().isoformat(),
            "checks": checks,
        },
    )
