"""PSP Adapter Dispatcher - Routes to correct PSP based on provider name."""
from decimal import Decimal
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog

from app.config import settings, Settings
from .adapter import PSPAdapter, PSPProvider, Order, VerificationResult, Refund
from .errors import ProviderNotAvailableError
from .razorpay_adapter import RazorpayAdapter

logger = structlog.get_logger(__name__)


def _razorpay_from_settings(cfg: Settings) -> PSPAdapter:
    return RazorpayAdapter(
        api_key=cfg.RAZORPAY_KEY_ID,
        api_secret=cfg.RAZORPAY_KEY_SECRET,
        webhook_secret=cfg.RAZORPAY_WEBHOOK_SECRET,
        api_base=cfg.RAZORPAY_API_BASE,
        timeout=cfg.PSP_HTTP_TIMEOUT_SECONDS,
        default_currency=cfg.PAYMENT_CURRENCY,
    )


# Known adapter implementations, keyed by provider kind.
ADAPTER_FACTORIES: Dict[PSPProvider, Callable[[Settings], PSPAdapter]] = {
    PSPProvider.RAZORPAY: _razorpay_from_settings,
}


class PSPDispatcher:
    """
    Holds the available PSP adapters keyed by provider name and routes
    each operation to one of them.

    Built once; adapters without credentials are left out and the
    registry is read-only afterwards.
    """

    def __init__(self, adapters: Iterable[PSPAdapter], default_provider: str = PSPProvider.RAZORPAY.value):
        self._adapters: Dict[str, PSPAdapter] = {}
        self.default_provider = default_provider.lower()

        for adapter in adapters:
            name = adapter.get_provider_name()
            if adapter.is_available():
                self._adapters[name] = adapter
                logger.info("psp_adapter_registered", provider=name)
            else:
                logger.warning("psp_adapter_unavailable", provider=name, reason="missing credentials")

        logger.info("psp_dispatcher_initialized", providers=self.available_providers(), default=self.default_provider)

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "PSPDispatcher":
        adapters = [factory(cfg) for factory in ADAPTER_FACTORIES.values()]
        return cls(adapters, default_provider=cfg.DEFAULT_PAYMENT_PROVIDER)

    def get_adapter(self, provider: Optional[str] = None) -> PSPAdapter:
        """
        Get PSP adapter for the given provider, or the default one.

        Raises:
            ProviderNotAvailableError: If no adapter is registered under that name
        """
        name = (provider or self.default_provider).lower()
        adapter = self._adapters.get(name)
        if adapter is None:
            raise ProviderNotAvailableError(name)
        return adapter

    def available_providers(self) -> List[str]:
        return list(self._adapters.keys())

    def is_provider_available(self, provider: str) -> bool:
        return provider.lower() in self._adapters

    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        provider: Optional[str] = None,
    ) -> Order:
        adapter = self.get_adapter(provider)
        logger.info("payment_order_requested", provider=adapter.get_provider_name(), currency=currency, receipt=receipt)
        order = await adapter.create_order(amount, currency, receipt, notes=notes, metadata=metadata)
        logger.info("payment_order_created", provider_order_id=order.provider_order_id, status=order.status)
        return order

    async def verify_payment(
        self,
        payment_id: str,
        order_id: str,
        signature: str,
        webhook_data: Optional[Dict[str, Any]] = None,
        provider: Optional[str] = None,
    ) -> VerificationResult:
        adapter = self.get_adapter(provider)
        result = await adapter.verify_payment(payment_id, order_id, signature, webhook_data=webhook_data)
        if result.is_valid:
            logger.info("payment_verification_succeeded", payment_id=payment_id, order_id=order_id)
        else:
            logger.warning(
                "payment_verification_failed",
                payment_id=payment_id,
                order_id=order_id,
                error_code=result.error_code,
                error=result.error_description,
            )
        return result

    async def refund_payment(
        self,
        payment_id: str,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> Refund:
        adapter = self.get_adapter(provider)
        refund = await adapter.refund_payment(payment_id, amount=amount, reason=reason, notes=notes)
        logger.info("payment_refund_processed", payment_id=payment_id, refund_id=refund.refund_id, status=refund.status)
        return refund


@lru_cache
def get_dispatcher() -> PSPDispatcher:
    """Process-wide dispatcher, built from settings on first use."""
    return PSPDispatcher.from_settings(settings)


def reset_dispatcher():
    """Drop the cached dispatcher (useful for testing)."""
    get_dispatcher.cache_clear()
