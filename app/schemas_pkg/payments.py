from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# Requests

class CreateOrderRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Amount in major currency units (e.g. rupees)")
    currency: str = Field(..., min_length=3, max_length=3)
    receipt: str = Field(..., min_length=1, max_length=40)
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    provider: Optional[str] = None


class VerifySignatureRequest(BaseModel):
    payment_id: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)
    webhook_data: Optional[Dict[str, Any]] = None
    provider: Optional[str] = None


class RefundRequest(BaseModel):
    payment_id: str = Field(..., min_length=1)
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2, description="Omit for a full refund")
    reason: Optional[str] = None
    notes: Optional[str] = None
    provider: Optional[str] = None


# Normalized results (amounts in major units)

class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_order_id: str
    amount: float
    currency: str
    receipt: str
    status: str
    created_at: datetime


class VerificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_valid: bool
    payment_id: str
    order_id: str
    amount: float
    currency: str
    status: str
    method: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    error_code: Optional[str] = None
    error_description: Optional[str] = None


class RefundOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    refund_id: str
    payment_id: str
    amount: float
    currency: str
    status: str
    reason: Optional[str] = None
    provider_refund_id: Optional[str] = None
    created_at: datetime


class ProvidersOut(BaseModel):
    providers: List[str]
    count: int


class HealthOut(BaseModel):
    status: str
    timestamp: datetime
    providers: List[str]
    uptime: float


# Response envelopes

class OrderResponse(BaseModel):
    success: bool = True
    data: OrderOut


class VerificationResponse(BaseModel):
    success: bool = True
    data: VerificationOut
    error: Optional[str] = None


class RefundResponse(BaseModel):
    success: bool = True
    data: RefundOut


class ProvidersResponse(BaseModel):
    success: bool = True
    data: ProvidersOut


class HealthResponse(BaseModel):
    success: bool = True
    data: HealthOut


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: Optional[str] = None
