"""
Snippetbox — Health Check Route
=================================

What:  Liveness/readiness probe for load balancers and container health checks.
How:   Runs SELECT 1 against the app's engine. The route sits on the
       standard chain only: no session is loaded or written.

Status levels:
    healthy    database reachable     (HTTP 200)
    unhealthy  database unreachable   (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from snippetbox import __version__
from snippetbox.database import ping
from snippetbox.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Uptime is measured from module import
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"model": HealthResponse}},
)
async def health_check(request: Request):
    db_status = "connected"
    overall = "healthy"

    try:
        await ping(request.app.state.engine)
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(status_code=200 if overall == "healthy" else 503, content=body.model_dump())
