"""
PSP Adapter Base Class and Interface.
Provides a uniform interface for payment gateways and the normalized
results every adapter returns.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class PSPProvider(str, Enum):
    """Supported PSP providers."""
    RAZORPAY = "razorpay"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Order:
    """Order as created by the processor. Amount is in major units."""
    amount: Decimal
    currency: str
    receipt: str
    provider_order_id: str
    status: str
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class VerificationResult:
    is_valid: bool
    payment_id: str
    order_id: str
    amount: Decimal = Decimal("0")
    currency: str = ""
    status: str = "failed"
    method: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    error_code: Optional[str] = None
    error_description: Optional[str] = None


@dataclass(frozen=True)
class Refund:
    refund_id: str
    payment_id: str
    amount: Decimal
    currency: str
    status: str
    reason: Optional[str] = None
    provider_refund_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)


class PSPAdapter(ABC):
    """
    Base adapter for Payment Service Providers.
    All PSP implementations must inherit from this class.

    Expected business outcomes (bad signature, failed verification) are
    returned as values. Only unexpected conditions raise.
    """

    provider: PSPProvider

    def __init__(
        self,
        api_key: Optional[str],
        api_secret: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        **kwargs,
    ):
        """
        Initialize PSP adapter with credentials.

        Args:
            api_key: Primary API key
            api_secret: API secret used to sign requests and payment callbacks
            webhook_secret: Shared secret for webhook signatures
            **kwargs: Provider-specific configuration
        """
        self.api_key = api_key or ""
        self.api_secret = api_secret or ""
        self.webhook_secret = webhook_secret or ""
        self.config = kwargs
        # credentials are read-only after construction
        self._available = bool(self.api_key and self.api_secret)

    @abstractmethod
    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """
        Create a payment order.

        Args:
            amount: Amount in major currency units (must be > 0)
            currency: ISO currency code
            receipt: Caller reference for the order
            notes: Free-form note attached to the order
            metadata: Key/value annotations, merged over notes

        Raises:
            ProviderOperationError: If the processor call fails
        """

    @abstractmethod
    async def verify_payment(
        self,
        payment_id: str,
        order_id: str,
        signature: str,
        webhook_data: Optional[Dict[str, Any]] = None,
    ) -> VerificationResult:
        """
        Verify a payment callback signature and fetch the authoritative payment.

        Never raises; failures are reported through the result.
        """

    @abstractmethod
    async def refund_payment(
        self,
        payment_id: str,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Refund:
        """
        Refund a payment.

        Args:
            payment_id: Processor payment id
            amount: Major-unit amount to refund (None for full refund)
            reason: Refund reason
            notes: Free-form note attached to the refund

        Raises:
            RefundError: If the processor does not accept the refund
        """

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Check a webhook signature header against the raw request body."""

    def get_provider_name(self) -> str:
        return self.provider.value

    def is_available(self) -> bool:
        return self._available

    def webhooks_configured(self) -> bool:
        return bool(self.webhook_secret)

    def __repr__(self):
        return f"<{self.__class__.__name__}(provider={self.get_provider_name()}, available={self._available})>"
