"""
PaymentWebhook model: append-only log of gateway callbacks.

Every callback is stored before its signature is checked, with the raw
body kept byte-for-byte so the signature can be re-verified later.
Duplicate deliveries are stored as separate rows; deduplication happens
at the transaction level in PaymentEngine.complete_transaction().

Usage:
    from payments.models import PaymentWebhook

    webhook = PaymentWebhook.objects.create(
        provider="razorpay",
        raw_payload=request.body,
        signature=request.headers.get("X-Razorpay-Signature", ""),
    )
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WebhookOutcome, WebhookStatus


class PaymentWebhook(UUIDPrimaryKeyMixin, BaseModel):
    """
    One received gateway callback.

    Processing Flow:
        1. Stored as RECEIVED
        2. Signature checked: VERIFIED, or FAILED and stop
        3. Event normalized and routed to the engine
        4. PROCESSED with an outcome, or FAILED with error_message

    Fields:
        provider: Gateway that sent the callback
        event_type: Gateway event name (e.g. payment.captured)
        provider_event_id: Gateway event identifier, if any
        raw_payload: Exact request body bytes
        payload: Parsed JSON body
        transaction: Transaction the callback resolved to
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    provider = models.CharField(
        max_length=20,
        db_index=True,
        help_text="Gateway that sent the callback",
    )

    event_type = models.CharField(
        max_length=100,
        blank=True,
        default="",
        db_index=True,
        help_text="Gateway event type",
    )

    provider_event_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Gateway event ID",
    )

    # ==========================================================================
    # Payload
    # ==========================================================================

    raw_payload = models.BinaryField(
        help_text="Exact request body bytes as received",
    )

    payload = models.JSONField(
        default=dict,
        blank=True,
        help_text="Parsed request body",
    )

    signature = models.TextField(
        blank=True,
        default="",
        help_text="Signature header sent with the callback",
    )

    is_signature_valid = models.BooleanField(
        null=True,
        blank=True,
        help_text="Result of signature verification (null until checked)",
    )

    # ==========================================================================
    # Processing State
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=WebhookStatus.choices,
        default=WebhookStatus.RECEIVED,
        db_index=True,
        help_text="Processing status",
    )

    outcome = models.CharField(
        max_length=20,
        choices=WebhookOutcome.choices,
        blank=True,
        default="",
        help_text="What processing did to the ledger",
    )

    transaction = models.ForeignKey(
        "payments.PaymentTransaction",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="webhooks",
        help_text="Transaction this callback resolved to",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When processing finished",
    )

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error details if processing failed",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Webhook"
        verbose_name_plural = "Payment Webhooks"
        indexes = [
            models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
            models.Index(fields=["provider", "event_type"], name="webhook_provider_event_idx"),
        ]

    def __str__(self) -> str:
        return f"PaymentWebhook({self.provider}, {self.event_type or '?'}, {self.status})"

    def mark_verified(self) -> None:
        """
        Record a valid signature.

        Note: Does not save - caller must save after calling.
        """
        self.is_signature_valid = True
        self.status = WebhookStatus.VERIFIED

    def mark_processed(self, outcome: str) -> None:
        """
        Mark the callback as fully handled.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookStatus.PROCESSED
        self.outcome = outcome
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        """
        Mark the callback as failed.

        Args:
            error_message: Description of what went wrong

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookStatus.FAILED
        self.error_message = error_message
        self.processed_at = timezone.now()
