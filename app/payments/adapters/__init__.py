"""
Payment gateway adapters.

All gateway calls go through a PaymentProvider so that error handling,
timeouts and logging are consistent, and so the engine never depends on
a specific gateway.

Usage:
    from payments.adapters import ProviderRegistry, OrderRequest

    registry = ProviderRegistry.from_settings()
    provider = registry.get("razorpay")
    order = provider.create_order(OrderRequest(...))
"""

from payments.adapters.base import (
    OrderRequest,
    PaymentProof,
    PaymentProvider,
    PaymentVerification,
    ProviderOrder,
    WebhookAction,
    WebhookActionType,
)
from payments.adapters.helpers import (
    from_minor_units,
    generate_invoice_number,
    generate_transaction_number,
    quantize,
    to_minor_units,
    validate_amount,
    validate_currency,
)
from payments.adapters.razorpay_adapter import RazorpayProvider
from payments.adapters.registry import ProviderRegistry
from payments.adapters.stripe_adapter import StripeProvider

__all__ = [
    "OrderRequest",
    "PaymentProof",
    "PaymentProvider",
    "PaymentVerification",
    "ProviderOrder",
    "ProviderRegistry",
    "RazorpayProvider",
    "StripeProvider",
    "WebhookAction",
    "WebhookActionType",
    "from_minor_units",
    "generate_invoice_number",
    "generate_transaction_number",
    "quantize",
    "to_minor_units",
    "validate_amount",
    "validate_currency",
]
