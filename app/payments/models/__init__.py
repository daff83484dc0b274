"""
Payment domain models.

This module contains all payment-related models:
- PaymentTransaction: One payment attempt and its lifecycle
- PaymentWebhook: Append-only log of gateway callbacks
- PaymentInvoice: Invoice issued for a completed transaction
- ActivityLog: Audit trail of payment activity
"""

from payments.models.activity_log import ActivityLog
from payments.models.payment_invoice import PaymentInvoice
from payments.models.payment_transaction import PaymentTransaction
from payments.models.payment_webhook import PaymentWebhook

__all__ = [
    "ActivityLog",
    "PaymentInvoice",
    "PaymentTransaction",
    "PaymentWebhook",
]
