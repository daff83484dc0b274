"""
Notification models.

A Notification is an in-app message for a user, optionally mirrored to
email. Payment flows create one per completed transaction; the
idempotency key keeps task retries from creating duplicates.
"""

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class EmailStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SENT = "sent", "Sent"
    FAILED = "failed", "Failed"
    SKIPPED = "skipped", "Skipped"


class Notification(UUIDPrimaryKeyMixin, BaseModel):
    """
    In-app notification with email mirror tracking.

    Fields:
        recipient: User who receives the notification
        notification_type: Machine-readable type key (e.g. payment_completed)
        title / body: Rendered content
        data: Structured payload for clients (transaction id, amount, ...)
        idempotency_key: Unique key preventing duplicate notifications
        email_status: Delivery state of the email mirror
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="User who receives the notification",
    )
    notification_type = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Notification type key",
    )
    title = models.CharField(
        max_length=200,
        help_text="Notification title",
    )
    body = models.TextField(
        help_text="Notification body",
    )
    data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Structured payload for clients",
    )
    is_read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has read the notification",
    )
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="Key preventing duplicate notifications",
    )

    # =========================================================================
    # Email Mirror
    # =========================================================================
    email_status = models.CharField(
        max_length=20,
        choices=EmailStatus.choices,
        default=EmailStatus.PENDING,
        help_text="Email delivery status",
    )
    email_sent_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the email was sent",
    )
    email_failure_reason = models.TextField(
        blank=True,
        default="",
        help_text="Last email failure reason",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["recipient", "is_read"],
                name="notif_recipient_read_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.notification_type} -> {self.recipient_id}"
