"""Health domain router.

Health check endpoint for monitoring and load balancers.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from compoundgate.core.constants import Routes
from compoundgate.core.deps import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix=Routes.HEALTH.prefix, tags=[Routes.HEALTH.tag])


@router.get("")
async def health(session: SessionDep):
    """Health check endpoint with database connectivity verification."""
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        logger.error("Health check: database unreachable", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "error"},
        )
    return {"status": "ok", "database": "ok"}
