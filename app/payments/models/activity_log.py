"""
ActivityLog model: audit trail of payment activity.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from django.db import models

from core.models import BaseModel


class ActivityLog(BaseModel):
    """
    One audited action.

    Actions written by the payments app:
        payment_initiated, payment_completed, payment_verification_failed,
        payment_failed, donation_completed
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activity_logs",
        help_text="User the action was performed for",
    )

    action = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Action key",
    )

    entity_type = models.CharField(
        max_length=64,
        help_text="Kind of record the action concerns",
    )

    entity_id = models.CharField(
        max_length=64,
        help_text="Identifier of the record",
    )

    details = models.JSONField(
        default=dict,
        blank=True,
        help_text="Structured context",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="activity_entity_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id}"

    @classmethod
    def record(
        cls,
        action: str,
        entity: models.Model,
        user=None,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        """Write an entry for a model instance."""
        return cls.objects.create(
            user=user,
            action=action,
            entity_type=entity._meta.model_name,
            entity_id=str(entity.pk),
            details=details or {},
        )
