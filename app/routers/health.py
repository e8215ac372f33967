"""
Health and provider introspection endpoints.
"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.deps import get_psp_dispatcher
from app.logging_config import get_logger
from app.psp.dispatcher import PSPDispatcher
from app.schemas_pkg import payments as schemas

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/providers", response_model=schemas.ProvidersResponse)
def list_providers(dispatcher: PSPDispatcher = Depends(get_psp_dispatcher)):
    providers = dispatcher.available_providers()
    return schemas.ProvidersResponse(data=schemas.ProvidersOut(providers=providers, count=len(providers)))


@router.get("/health", response_model=schemas.HealthResponse)
def health(request: Request, dispatcher: PSPDispatcher = Depends(get_psp_dispatcher)):
    try:
        started_at = getattr(request.app.state, "started_at", None) or time.monotonic()
        return schemas.HealthResponse(
            data=schemas.HealthOut(
                status="healthy",
                timestamp=datetime.now(timezone.utc),
                providers=dispatcher.available_providers(),
                uptime=round(time.monotonic() - started_at, 3),
            )
        )
    except Exception as e:
        logger.error("health_check_failed", error=str(e), exc_info=True)
        body = schemas.ErrorResponse(error="Service unhealthy", message=str(e))
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump())
