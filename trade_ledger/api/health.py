"""
Liveness and database reachability check.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trade_ledger.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """
    Report whether the service is up and its database answers.

    An unreachable database still returns 200, with status
    "degraded", so a monitor can tell a dead process from a
    dead database.
    """
    try:
        db.execute(text("SELECT 1"))
        database = "healthy"
    except SQLAlchemyError as e:
        logger.error("Health check could not reach the database: %s", e)
        database = "unhealthy"

    return {
        "status": "healthy" if database == "healthy" else "degraded",
        "service": "trade-ledger",
        "database": database,
    }
