"""
Health check endpoint for deployment monitoring.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.session import get_db

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for deployment monitoring.

    Returns 200 with ``status`` "healthy", or "degraded" when the database
    is unreachable.
    """
    status = "healthy"

    # Check database connectivity
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        db_status = f"error: {str(e)}"
        status = "degraded"

    return {
        "status": status,
        "timestamp": utcnow().isoformat(),
        "database": db_status,
        "version": "1.0.0",
    }
