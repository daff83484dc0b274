"""
Registry of configured payment providers.

Built once at startup by PaymentsConfig.ready() and handed to the
PaymentEngine; nothing else constructs providers.
"""

from __future__ import annotations

import logging

from django.conf import settings

from payments.adapters.base import PaymentProvider
from payments.adapters.razorpay_adapter import RazorpayProvider
from payments.adapters.stripe_adapter import StripeProvider
from payments.exceptions import PaymentValidationError

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type] = {
    RazorpayProvider.name: RazorpayProvider,
    StripeProvider.name: StripeProvider,
}


class ProviderRegistry:
    """Name -> PaymentProvider lookup with a default."""

    def __init__(self, providers: dict[str, PaymentProvider], default: str | None = None):
        self._providers = dict(providers)
        self.default = default or next(iter(self._providers), None)

    @classmethod
    def from_settings(cls) -> ProviderRegistry:
        providers = {}
        for name in settings.PAYMENT_ENABLED_PROVIDERS:
            provider_class = PROVIDER_CLASSES.get(name)
            if provider_class is None:
                logger.warning("Unknown payment provider in settings", extra={"provider": name})
                continue
            providers[name] = provider_class.from_settings()

        logger.info(
            "Payment providers configured",
            extra={"providers": sorted(providers), "default": settings.PAYMENT_DEFAULT_PROVIDER},
        )
        return cls(providers, default=settings.PAYMENT_DEFAULT_PROVIDER)

    def get(self, name: str | None = None) -> PaymentProvider:
        """
        Look up a provider, falling back to the default.

        Raises:
            PaymentValidationError: Provider is not configured
        """
        name = name or self.default
        try:
            return self._providers[name]
        except KeyError:
            raise PaymentValidationError(
                f"Unsupported payment provider: {name}",
                error_code="UNSUPPORTED_PROVIDER",
                details={"provider": name, "available": self.names()},
            ) from None

    def has(self, name: str) -> bool:
        return name in self._providers

    def names(self) -> list[str]:
        return sorted(self._providers)
