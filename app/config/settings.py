"""
Configuration settings for the payment gateway API.
Handles environment variables and application settings.
"""
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

# grab env vars from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Razorpay Payment Gateway API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")

    # CORS (comma separated)
    CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "http://localhost:3000")

    # Razorpay
    RAZORPAY_KEY_ID: Optional[str] = os.getenv("RAZORPAY_KEY_ID")
    RAZORPAY_KEY_SECRET: Optional[str] = os.getenv("RAZORPAY_KEY_SECRET")
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = os.getenv("RAZORPAY_WEBHOOK_SECRET")
    RAZORPAY_API_BASE: str = os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com")

    # Payments
    DEFAULT_PAYMENT_PROVIDER: str = os.getenv("DEFAULT_PAYMENT_PROVIDER", "razorpay")
    PAYMENT_CURRENCY: str = os.getenv("PAYMENT_CURRENCY", "INR")
    PAYMENT_TIMEOUT: int = int(os.getenv("PAYMENT_TIMEOUT", "1800"))  # seconds
    PSP_HTTP_TIMEOUT_SECONDS: float = float(os.getenv("PSP_HTTP_TIMEOUT_SECONDS", "15"))

    # Rate limiting (per client IP)
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    RATE_LIMIT_WINDOW_MS: int = int(os.getenv("RATE_LIMIT_WINDOW_MS", "900000"))  # 15 minutes
    RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))

    @field_validator("ENVIRONMENT")
    @classmethod
    def check_environment(cls, v):
        if v not in ("development", "production", "test"):
            raise ValueError("ENVIRONMENT must be one of development, production, test")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def check_log_level(cls, v):
        v = v.lower()
        if v not in ("error", "warn", "warning", "info", "debug"):
            raise ValueError("LOG_LEVEL must be one of error, warn, info, debug")
        return v

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGIN.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env file


# Create settings instance
settings = Settings()
