"""
Structured logging configuration using structlog.
"""
import structlog
import logging
import sys
from typing import Any, Dict

from app.config import settings

# LOG_LEVEL values accepted by settings, mapped to stdlib levels
_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Configure standard library logging (structlog renders through it, so
# filter_by_level below honours this level)
logging.basicConfig(
    format="%(message)s",
    stream=sys.stdout,
    level=_LEVELS.get(settings.LOG_LEVEL, logging.INFO),
)


def add_app_context(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    """Add application context to log entries."""
    event_dict['app'] = 'payment-gateway'
    event_dict['environment'] = settings.ENVIRONMENT  # from ENVIRONMENT in .env
    return event_dict


def configure_logging():
    """Configure structlog with processors."""
    structlog.configure(
        processors=[
            # request_id/method/path bound by request_id_middleware
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            add_app_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            # One JSON object per line
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Initialize logging
configure_logging()


def get_logger(name: str = __name__):
    """Get a structured logger instance."""
    return structlog.get_logger(name)
