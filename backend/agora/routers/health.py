"""Health check router."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agora.database import get_db

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)


@router.get("")
def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """Readiness check (database connectivity)."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Database readiness check failed: {e}")
        database = "error"

    status = "ready" if database == "ok" else "degraded"
    return {"status": status, "checks": {"database": database}}
