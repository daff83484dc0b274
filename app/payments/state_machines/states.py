"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration;
PaymentTransaction drives its status with django-fsm transitions.

State Machines Overview:

PaymentTransaction States:
    pending → completed (verified payment, terminal)
    pending → failed (explicit gateway failure signal, terminal)
    pending → expired (deadline elapsed, applied lazily on read, terminal)

PaymentWebhook States:
    received → verified → processed
    received → failed (invalid signature)
    verified → failed (processing error)

PaymentInvoice States:
    generated → emailed
"""

from django.db import models


class TransactionStatus(models.TextChoices):
    """
    States for the PaymentTransaction lifecycle.

    Terminal states: COMPLETED, FAILED, EXPIRED
    Only PENDING can transition.
    """

    PENDING = "PENDING", "Pending"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    EXPIRED = "EXPIRED", "Expired"


class ReferenceType(models.TextChoices):
    """
    Categories of payable things.

    Each value has a strategy in payments.strategies that computes its
    fee and applies its completion side effects.
    """

    EVENT_REGISTRATION = "EVENT_REGISTRATION", "Event Registration"
    EVENT_PAYMENT = "EVENT_PAYMENT", "Event Payment"
    MERCHANDISE = "MERCHANDISE", "Event Merchandise"
    MERCHANDISE_ORDER = "MERCHANDISE_ORDER", "Merchandise Order"
    MEMBERSHIP = "MEMBERSHIP", "Membership"
    DONATION = "DONATION", "Donation"
    SUBSCRIPTION_NEW = "SUBSCRIPTION_NEW", "New Subscription"
    SUBSCRIPTION_RENEWAL = "SUBSCRIPTION_RENEWAL", "Subscription Renewal"
    SUBSCRIPTION_UPGRADE = "SUBSCRIPTION_UPGRADE", "Subscription Upgrade"


class PaymentProviderName(models.TextChoices):
    """Supported payment gateways."""

    RAZORPAY = "razorpay", "Razorpay"
    STRIPE = "stripe", "Stripe"


class WebhookStatus(models.TextChoices):
    """
    Processing status for PaymentWebhook.

    RECEIVED: Persisted, signature not yet checked
    VERIFIED: Signature valid, processing in progress
    PROCESSED: Processing finished (see outcome)
    FAILED: Invalid signature or processing error
    """

    RECEIVED = "RECEIVED", "Received"
    VERIFIED = "VERIFIED", "Verified"
    PROCESSED = "PROCESSED", "Processed"
    FAILED = "FAILED", "Failed"


class WebhookOutcome(models.TextChoices):
    """What processing a webhook did to the ledger."""

    COMPLETED = "completed", "Completed transaction"
    ALREADY_COMPLETED = "already_completed", "Already completed"
    FAILED = "failed", "Transaction failed"
    IGNORED = "ignored", "Ignored"


class InvoiceStatus(models.TextChoices):
    GENERATED = "GENERATED", "Generated"
    EMAILED = "EMAILED", "Emailed"
