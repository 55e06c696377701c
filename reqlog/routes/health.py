"""
reqlog — Health Check Route
=============================

What:  Liveness endpoint for load balancers and container health checks.
How:   Logs one entry through the request's Logger and reports the service
       identity that every entry of this process carries.
"""

from fastapi import APIRouter, Depends

from reqlog import __version__
from reqlog.context import get_request_logger
from reqlog.logger import Logger
from reqlog.schemas import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(lgr: Logger = Depends(get_request_logger)) -> HealthResponse:
    lgr.info("health check")
    return HealthResponse(
        status="healthy",
        service=lgr.service,
        env=lgr.env,
        version=__version__,
        trace_id=lgr.trace_id,
    )
