import uvicorn

from app.config import settings


def run():
    """Start the API under uvicorn; SIGINT/SIGTERM trigger a graceful shutdown."""
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level="warning" if settings.LOG_LEVEL == "warn" else settings.LOG_LEVEL,
        reload=settings.is_development,
        timeout_graceful_shutdown=10,
    )


if __name__ == "__main__":
    run()
