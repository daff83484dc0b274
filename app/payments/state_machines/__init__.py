"""
State machine enums for payment models.
"""

from payments.state_machines.states import (
    InvoiceStatus,
    PaymentProviderName,
    ReferenceType,
    TransactionStatus,
    WebhookOutcome,
    WebhookStatus,
)

__all__ = [
    "InvoiceStatus",
    "PaymentProviderName",
    "ReferenceType",
    "TransactionStatus",
    "WebhookOutcome",
    "WebhookStatus",
]
