# app/schemas_pkg/__init__.py

# Payment request/response schemas
from .payments import (
    CreateOrderRequest,
    VerifySignatureRequest,
    RefundRequest,
    OrderOut,
    VerificationOut,
    RefundOut,
    ProvidersOut,
    HealthOut,
    ErrorResponse,
)

__all__ = [
    # Requests
    "CreateOrderRequest",
    "VerifySignatureRequest",
    "RefundRequest",

    # Normalized results
    "OrderOut",
    "VerificationOut",
    "RefundOut",
    "ProvidersOut",
    "HealthOut",
    "ErrorResponse",
]
