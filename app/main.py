# app/main.py

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.logging_config import get_logger
from app.middleware import (
    limiter,
    rate_limit_exceeded_handler,
    request_id_middleware,
    security_headers_middleware,
)
from app.psp.dispatcher import get_dispatcher
from app.psp.errors import ProviderNotAvailableError
from app.routers import health, payments, razorpay_webhooks

logger = get_logger(__name__)


# ---------------------------------------------
# LIFESPAN
# ---------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.started_at = time.monotonic()
    dispatcher = get_dispatcher()
    logger.info(
        "payment_gateway_started",
        environment=settings.ENVIRONMENT,
        port=settings.PORT,
        providers=dispatcher.available_providers(),
    )
    yield
    logger.info("payment_gateway_stopped")


# ---------------------------------------------
# APP INIT
# ---------------------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------
# MIDDLEWARE
# ---------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Per-IP rate limit, innermost so 429s still carry request id and security headers
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.middleware("http")(security_headers_middleware)
app.middleware("http")(request_id_middleware)


# ---------------------------------------------
# ERROR HANDLERS
# ---------------------------------------------
def _field_name(loc) -> str:
    # drop the leading "body"/"query" marker
    parts = [str(p) for p in loc[1:]] or [str(p) for p in loc]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    missing = [_field_name(e["loc"]) for e in errors if e.get("type") == "missing"]
    if missing:
        error = f"Missing required fields: {', '.join(missing)}"
    elif errors and errors[0].get("type") == "json_invalid":
        error = "Invalid JSON body"
    elif errors:
        first = errors[0]
        error = f"Invalid field '{_field_name(first['loc'])}': {first.get('msg')}"
    else:
        error = "Invalid request"
    fields = sorted({_field_name(e["loc"]) for e in errors})
    logger.warning("request_validation_failed", fields=fields)
    return JSONResponse(status_code=400, content={"success": False, "error": error, "fields": fields})


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(ProviderNotAvailableError)
async def provider_not_available_handler(request: Request, exc: ProviderNotAvailableError):
    logger.warning("payment_provider_not_available", provider=exc.provider)
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": exc.message, "provider": exc.provider},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": "Endpoint not found", "path": request.url.path},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc) if settings.is_development else "Something went wrong",
        },
    )


# ---------------------------------------------
# ROUTERS
# ---------------------------------------------
app.include_router(health.router, prefix="/api")
app.include_router(payments.router, prefix="/api")
app.include_router(razorpay_webhooks.router, prefix="/api")


# ---------------------------------------------
# ROOT ENDPOINT
# ---------------------------------------------
@app.get("/")
def root():
    return {
        "success": True,
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "documentation": "/api/health",
        # checkout clients read these to configure the payment form
        "payment": {
            "currency": settings.PAYMENT_CURRENCY,
            "timeout": settings.PAYMENT_TIMEOUT,
        },
    }
