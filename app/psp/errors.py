"""Errors raised by PSP adapters and the dispatcher."""
from typing import Optional


class PSPError(Exception):
    """Base class for payment provider failures."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider


class ProviderOperationError(PSPError):
    """Processor call failed (network error or processor-side rejection)."""


class RefundError(PSPError):
    """Processor refused or failed to process a refund."""


class ProviderNotAvailableError(PSPError):
    """Requested provider has no registered adapter."""

    def __init__(self, provider: str):
        super().__init__(f"Payment provider '{provider}' is not available", provider=provider)
