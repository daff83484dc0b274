"""
Payment services.

This module provides:
- PaymentEngine: calculate, initiate, verify and complete payments
- WebhookProcessor: store, verify and apply gateway callbacks
- InvoiceService: invoices for completed transactions

The engine and processor are built around the ProviderRegistry created
once in PaymentsConfig.ready(); use the factories below rather than
constructing them directly.

Usage:
    from payments.services import get_payment_engine

    engine = get_payment_engine()
    calculation = engine.calculate("DONATION", "general", user, {"amount": "250"})
"""

from django.apps import apps

from payments.services.invoice_service import InvoiceService
from payments.services.payment_engine import (
    CompletionResult,
    InitiationResult,
    PaymentEngine,
    VerificationResult,
)
from payments.services.webhook_processor import WebhookProcessor


def get_payment_engine() -> PaymentEngine:
    return PaymentEngine(providers=apps.get_app_config("payments").provider_registry)


def get_webhook_processor() -> WebhookProcessor:
    return WebhookProcessor(get_payment_engine())


__all__ = [
    "CompletionResult",
    "InitiationResult",
    "InvoiceService",
    "PaymentEngine",
    "VerificationResult",
    "WebhookProcessor",
    "get_payment_engine",
    "get_webhook_processor",
]
