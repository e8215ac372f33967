"""Razorpay PSP Adapter Implementation."""
from __future__ import annotations

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
import structlog

from .adapter import PSPAdapter, PSPProvider, Order, VerificationResult, Refund
from .errors import ProviderOperationError, RefundError
from .money import to_minor_units, to_major_units

logger = structlog.get_logger(__name__)

DEFAULT_API_BASE = "https://api.razorpay.com"
DEFAULT_TIMEOUT = 15.0

INVALID_SIGNATURE = "INVALID_SIGNATURE"
VERIFICATION_FAILED = "VERIFICATION_FAILED"


def compute_signature(secret: str, message: bytes) -> str:
    """Hex HMAC-SHA256 of message keyed by secret."""
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def _signatures_match(expected: str, supplied: Optional[str]) -> bool:
    if not supplied:
        return False
    # constant-time; compare bytes so non-ascii input cannot raise
    return hmac.compare_digest(expected.encode(), supplied.encode())


def _error_message(exc: Exception) -> str:
    """Pull Razorpay's error description out of an HTTP error when present."""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            err = body.get("error") or {}
            description = err.get("description") if isinstance(err, dict) else None
            if description:
                return description
        return f"HTTP {exc.response.status_code} from processor"
    if isinstance(exc, (KeyError, TypeError, ValueError, ArithmeticError)):
        return f"Malformed processor response ({exc.__class__.__name__})"
    return str(exc) or exc.__class__.__name__


def _timestamp(value: Any) -> datetime:
    if isinstance(value, (int, float)) and value > 0:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return datetime.now(timezone.utc)


class RazorpayAdapter(PSPAdapter):
    """
    Razorpay payment gateway adapter.

    Checkout callbacks are signed with the API key secret over
    ``order_id|payment_id``. Webhooks are signed with the separate webhook
    secret over the raw request body. The two secrets are never swapped.
    """

    provider = PSPProvider.RAZORPAY

    def __init__(
        self,
        api_key: Optional[str],
        api_secret: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ):
        """Initialize Razorpay adapter."""
        super().__init__(api_key, api_secret, webhook_secret=webhook_secret, **kwargs)
        self._base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        token = base64.b64encode(f"{self.api_key}:{self.api_secret}".encode()).decode()
        self._auth_header = {"Authorization": f"Basic {token}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base,
            headers=self._auth_header,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _post(self, path: str, json: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            r = await client.post(path, json=json)
            r.raise_for_status()
            return r.json()

    async def _get(self, path: str) -> Dict[str, Any]:
        async with self._client() as client:
            r = await client.get(path)
            r.raise_for_status()
            return r.json()

    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """Create Razorpay order."""
        minor_amount = to_minor_units(amount)
        payload: Dict[str, Any] = {
            "amount": minor_amount,
            "currency": currency.upper(),
            "receipt": receipt,
        }

        annotations: Dict[str, Any] = {}
        if notes:
            annotations["notes"] = notes
        if metadata:
            # metadata wins on key collision
            annotations.update(metadata)
        if annotations:
            payload["notes"] = annotations

        logger.info(
            "razorpay_order_create_started",
            amount=str(amount),
            amount_minor=minor_amount,
            currency=payload["currency"],
            receipt=receipt,
        )

        try:
            data = await self._post("/v1/orders", payload)
            order = Order(
                amount=to_major_units(data.get("amount", minor_amount)),
                currency=data.get("currency") or payload["currency"],
                receipt=data.get("receipt") or receipt,
                provider_order_id=data["id"],
                status=data.get("status", ""),
                created_at=_timestamp(data.get("created_at")),
            )
        except Exception as e:
            message = _error_message(e)
            logger.error("razorpay_order_create_failed", receipt=receipt, error=message, exc_info=True)
            raise ProviderOperationError(f"Failed to create payment order: {message}", provider=self.get_provider_name()) from e

        logger.info("razorpay_order_created", order_id=order.provider_order_id, receipt=receipt)
        return order

    async def verify_payment(
        self,
        payment_id: str,
        order_id: str,
        signature: str,
        webhook_data: Optional[Dict[str, Any]] = None,
    ) -> VerificationResult:
        """Verify Razorpay checkout signature, then fetch the payment."""
        logger.info(
            "razorpay_payment_verify_started",
            payment_id=payment_id,
            order_id=order_id,
            webhook_event=(webhook_data or {}).get("event"),
        )

        expected = compute_signature(self.api_secret, f"{order_id}|{payment_id}".encode())
        if not _signatures_match(expected, signature):
            logger.warning("razorpay_invalid_signature", payment_id=payment_id, order_id=order_id)
            return VerificationResult(
                is_valid=False,
                payment_id=payment_id,
                order_id=order_id,
                status="failed",
                error_code=INVALID_SIGNATURE,
                error_description="Payment signature verification failed",
            )

        try:
            payment = await self._get(f"/v1/payments/{payment_id}")
            result = VerificationResult(
                is_valid=True,
                payment_id=payment.get("id") or payment_id,
                order_id=payment.get("order_id") or order_id,
                amount=to_major_units(payment["amount"]),
                currency=payment.get("currency") or self.config.get("default_currency", ""),
                status=payment.get("status") or "",
                method=payment.get("method"),
                email=payment.get("email"),
                contact=str(payment["contact"]) if payment.get("contact") is not None else None,
            )
        except Exception as e:
            message = _error_message(e)
            logger.error("razorpay_payment_fetch_failed", payment_id=payment_id, error=message)
            return VerificationResult(
                is_valid=False,
                payment_id=payment_id,
                order_id=order_id,
                status="failed",
                error_code=VERIFICATION_FAILED,
                error_description=f"Payment verification failed: {message}",
            )

        logger.info("razorpay_payment_verified", payment_id=payment_id, status=result.status)
        return result

    async def refund_payment(
        self,
        payment_id: str,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Refund:
        """Refund Razorpay payment. Omitting amount refunds the full payment."""
        payload: Dict[str, Any] = {}
        if amount is not None:
            payload["amount"] = to_minor_units(amount)

        refund_notes: Dict[str, Any] = {}
        if notes:
            refund_notes["notes"] = notes
        if reason:
            refund_notes["reason"] = reason
        if refund_notes:
            payload["notes"] = refund_notes

        logger.info(
            "razorpay_refund_started",
            payment_id=payment_id,
            amount_minor=payload.get("amount"),
            full_refund=amount is None,
        )

        try:
            data = await self._post(f"/v1/payments/{payment_id}/refund", payload)
            refund_id = data["id"]
            refunded = to_major_units(data["amount"])
        except Exception as e:
            message = _error_message(e)
            logger.error("razorpay_refund_failed", payment_id=payment_id, error=message)
            raise RefundError(f"Failed to process refund: {message}", provider=self.get_provider_name()) from e

        logger.info("razorpay_refund_processed", refund_id=refund_id, payment_id=payment_id)

        return Refund(
            refund_id=refund_id,
            payment_id=data.get("payment_id") or payment_id,
            amount=refunded,
            currency=data.get("currency") or self.config.get("default_currency", ""),
            status=data.get("status", ""),
            reason=reason,
            provider_refund_id=refund_id,
            created_at=_timestamp(data.get("created_at")),
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify Razorpay webhook body against X-Razorpay-Signature."""
        if not self.webhook_secret:
            return False
        return _signatures_match(compute_signature(self.webhook_secret, payload), signature)
