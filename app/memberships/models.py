"""
Membership models.

- MembershipFee: Annual fee per batch (cohort) year
- Membership: A user's membership for one calendar year
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import BaseModel


class MembershipStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACTIVE = "active", "Active"
    EXPIRED = "expired", "Expired"


class MembershipFee(BaseModel):
    """
    Annual membership fee for members of a batch.

    Fees differ by cohort (recent graduates pay less). A batch without an
    active row, or with a zero amount, cannot pay for membership.
    """

    batch_year = models.PositiveIntegerField(
        unique=True,
        help_text="Batch/cohort year this fee applies to",
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Annual membership fee",
    )
    fee_type = models.CharField(
        max_length=20,
        default="ANNUAL",
        help_text="Fee type label shown on invoices",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this fee is currently charged",
    )

    class Meta:
        ordering = ["-batch_year"]

    def __str__(self) -> str:
        return f"{self.batch_year}: {self.amount}"


class Membership(BaseModel):
    """A user's membership for a calendar year."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
        help_text="Member",
    )
    membership_year = models.PositiveIntegerField(
        help_text="Calendar year the membership covers",
    )
    status = models.CharField(
        max_length=20,
        choices=MembershipStatus.choices,
        default=MembershipStatus.PENDING,
        db_index=True,
        help_text="Membership status",
    )
    amount_paid = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Amount paid for this membership",
    )
    valid_from = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Start of validity",
    )
    valid_until = models.DateTimeField(
        null=True,
        blank=True,
        help_text="End of validity (1 January of the following year)",
    )
    payment_transaction = models.ForeignKey(
        "payments.PaymentTransaction",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="memberships",
        help_text="Transaction that paid for this membership",
    )

    class Meta:
        ordering = ["-membership_year"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "membership_year"],
                name="unique_membership_per_user_year",
            ),
        ]

    def __str__(self) -> str:
        return f"Membership({self.user_id}, {self.membership_year})"

    @staticmethod
    def validity_end(year: int) -> datetime.datetime:
        """Memberships run until midnight UTC on 1 January of the next year."""
        return datetime.datetime(year + 1, 1, 1, tzinfo=datetime.timezone.utc)

    @property
    def is_active(self) -> bool:
        return (
            self.status == MembershipStatus.ACTIVE
            and self.valid_until is not None
            and self.valid_until > timezone.now()
        )
