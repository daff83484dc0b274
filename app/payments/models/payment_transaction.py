"""
PaymentTransaction model: the ledger row for one payment attempt.

A transaction is created PENDING by PaymentEngine.initiate() and moves
exactly once to a terminal state. Both confirmation channels (client
verify and gateway webhook) converge on PaymentEngine.complete_transaction(),
which locks this row before transitioning it.

Usage:
    from payments.models import PaymentTransaction
    from payments.state_machines import TransactionStatus

    txn = PaymentTransaction.objects.select_for_update().get(id=txn_id)
    if txn.status == TransactionStatus.PENDING:
        txn.complete(provider_payment_id="pay_123", provider_payment_data={})
        txn.save()
"""

from __future__ import annotations

from datetime import datetime

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import (
    PaymentProviderName,
    ReferenceType,
    TransactionStatus,
)


class PaymentTransaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    A single payment for a payable reference.

    State Flow:
        PENDING -> COMPLETED (verified by client call or webhook)
        PENDING -> FAILED (gateway reported failure)
        PENDING -> EXPIRED (read after expires_at)

    Fields:
        transaction_number: Human-readable PT-YYYYMMDD-XXXXXX number
        user: Paying user
        amount: Total charged, in major currency units
        reference_type/reference_id: Polymorphic pointer to the paid thing
        breakdown: Itemized fee breakdown, fixed at initiation
        metadata: Data needed to apply completion side effects
        provider*: Gateway linkage
        expires_at: Deadline after which a PENDING transaction expires

    Note:
        The status field is not protected so that select_for_update()
        reloads and refresh_from_db() keep working; all status changes
        still go through the transition methods below.
    """

    # ==========================================================================
    # Identification
    # ==========================================================================

    transaction_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Human-readable number (PT-YYYYMMDD-XXXXXX)",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payment_transactions",
        help_text="User making the payment",
    )

    # ==========================================================================
    # Amount
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Total amount in major currency units",
    )

    currency = models.CharField(
        max_length=3,
        default="INR",
        help_text="ISO 4217 currency code",
    )

    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Description shown to the payer",
    )

    # ==========================================================================
    # Payable Reference
    # ==========================================================================

    reference_type = models.CharField(
        max_length=32,
        choices=ReferenceType.choices,
        help_text="Kind of thing being paid for",
    )

    reference_id = models.CharField(
        max_length=64,
        help_text="Identifier of the thing being paid for",
    )

    breakdown = models.JSONField(
        default=dict,
        blank=True,
        help_text="Itemized fee breakdown captured at initiation",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Reference-specific data used on completion",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=TransactionStatus.PENDING,
        choices=TransactionStatus.choices,
        db_index=True,
        protected=False,
        help_text="Current transaction status (managed by FSM)",
    )

    # ==========================================================================
    # Gateway Linkage
    # ==========================================================================

    provider = models.CharField(
        max_length=20,
        choices=PaymentProviderName.choices,
        help_text="Payment gateway handling this transaction",
    )

    provider_order_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Gateway order / intent ID",
    )

    provider_payment_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Gateway payment ID once paid",
    )

    provider_order_data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Raw gateway order response",
    )

    provider_payment_data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Raw gateway payment details",
    )

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Reason reported when the payment failed",
    )

    # ==========================================================================
    # Timestamps
    # ==========================================================================

    initiated_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the payment was initiated",
    )

    expires_at = models.DateTimeField(
        help_text="When a pending payment expires",
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was completed",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Transaction"
        verbose_name_plural = "Payment Transactions"
        indexes = [
            models.Index(fields=["reference_type", "reference_id"], name="txn_reference_idx"),
            models.Index(fields=["user", "status"], name="txn_user_status_idx"),
            models.Index(fields=["status", "expires_at"], name="txn_status_expiry_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["provider", "provider_order_id"],
                condition=models.Q(provider_order_id__isnull=False),
                name="unique_provider_order",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_transaction_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.transaction_number} ({self.status}, {self.amount} {self.currency})"

    @property
    def is_terminal(self) -> bool:
        return self.status != TransactionStatus.PENDING

    def is_past_expiry(self, now: datetime | None = None) -> bool:
        """Whether a PENDING transaction has passed its deadline."""
        now = now or timezone.now()
        return self.status == TransactionStatus.PENDING and now >= self.expires_at

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=TransactionStatus.PENDING,
        target=TransactionStatus.COMPLETED,
    )
    def complete(
        self,
        provider_payment_id: str | None = None,
        provider_payment_data: dict | None = None,
    ):
        """
        Mark the payment as received.

        Transition: PENDING -> COMPLETED
        """
        self.provider_payment_id = provider_payment_id or self.provider_payment_id
        self.provider_payment_data = provider_payment_data or {}
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=TransactionStatus.PENDING,
        target=TransactionStatus.FAILED,
    )
    def fail(self, reason: str | None = None, provider_payment_id: str | None = None):
        """
        Mark the payment as failed by the gateway.

        Transition: PENDING -> FAILED
        """
        self.failure_reason = reason
        if provider_payment_id:
            self.provider_payment_id = provider_payment_id

    @transition(
        field=status,
        source=TransactionStatus.PENDING,
        target=TransactionStatus.EXPIRED,
    )
    def expire(self):
        """
        Expire an abandoned payment.

        Transition: PENDING -> EXPIRED
        """
        pass
