"""
Middleware for request tracking, logging and rate limiting.
"""
import uuid
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from structlog.contextvars import bind_contextvars, clear_contextvars
from app.config import settings
from app.logging_config import get_logger
import time

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def rate_limit_string(max_requests: int, window_ms: int) -> str:
    """Render the per-IP window as a limits expression, e.g. '100/900 seconds'."""
    window_seconds = max(1, window_ms // 1000)
    return f"{max_requests}/{window_seconds} seconds"


# One shared window per client IP across every route
limiter = Limiter(
    key_func=get_remote_address,
    application_limits=[rate_limit_string(settings.RATE_LIMIT_MAX_REQUESTS, settings.RATE_LIMIT_WINDOW_MS)],
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """
    Envelope for 429 responses.
    SlowAPIMiddleware calls this synchronously, so it must stay a plain def.
    """
    logger.warning(
        "rate_limit_exceeded",
        client_host=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={"success": False, "error": RATE_LIMIT_MESSAGE},
    )


async def request_id_middleware(request: Request, call_next: Callable) -> Response:
    """
    Add unique request_id to each request for tracing.
    Binds request_id to structlog context for all logs in this request.
    """
    # Generate or extract request ID
    request_id = request.headers.get('X-Request-ID', str(uuid.uuid4()))

    # Bind to structlog context (available in all logs during this request,
    # including the adapter's processor calls)
    clear_contextvars()
    bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    # Add to request state for access in route handlers
    request.state.request_id = request_id

    # Log incoming request; method and path come from the bound context
    logger.info(
        "request_started",
        client_host=request.client.host if request.client else None,
    )

    start_time = time.time()

    try:
        response = await call_next(request)

        # Log response
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        # Add request ID to response headers so checkout clients can quote it
        response.headers['X-Request-ID'] = request_id

        return response

    except Exception as exc:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            "request_failed",
            exc_info=exc,
            duration_ms=round(duration_ms, 2),
        )
        raise
    finally:
        # Clear context after request
        clear_contextvars()


async def security_headers_middleware(request: Request, call_next: Callable) -> Response:
    """
    Attach conservative security headers to every response.
    """
    response = await call_next(request)
    # Handlers may set their own; only fill the gaps
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    return response
