"""
Notification service layer.

Services:
    NotificationService: Payment notifications (in-app + email mirror)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Email delivery is queued after the notification row commits
    - Re-sending for the same transaction returns the existing notification

Usage:
    from notifications.services import NotificationService

    result = NotificationService.send(
        user,
        transaction,
        {"reference_label": "Event Registration"},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.db import transaction as db_transaction

from core.services import BaseService, ServiceResult
from notifications.models import EmailStatus, Notification

if TYPE_CHECKING:
    from authentication.models import User
    from payments.models import PaymentTransaction

logger = logging.getLogger(__name__)

# Human-readable names for payable reference types
REFERENCE_DISPLAY_NAMES = {
    "EVENT_REGISTRATION": "Event Registration",
    "EVENT_PAYMENT": "Event Registration",
    "MERCHANDISE": "Event Merchandise",
    "MERCHANDISE_ORDER": "Merchandise Order",
    "MEMBERSHIP": "Membership",
    "DONATION": "Donation",
    "SUBSCRIPTION_NEW": "Subscription",
    "SUBSCRIPTION_RENEWAL": "Subscription Renewal",
    "SUBSCRIPTION_UPGRADE": "Subscription Upgrade",
}


class NotificationService(BaseService):
    """Create payment notifications and queue their email mirror."""

    PAYMENT_COMPLETED = "payment_completed"

    @classmethod
    def send(
        cls,
        user: User,
        transaction: PaymentTransaction,
        context: dict[str, Any] | None = None,
    ) -> ServiceResult[Notification]:
        """
        Notify a user that a payment completed.

        Args:
            user: Recipient
            transaction: The completed transaction
            context: Extra template data; "reference_label" overrides the
                display name of the reference type

        Returns:
            ServiceResult with the (possibly pre-existing) Notification,
            or a failure for a transaction that is not COMPLETED
        """
        if transaction.status != "COMPLETED":
            return ServiceResult.failure(
                "Payment notifications are only sent for completed transactions",
                error_code="TRANSACTION_NOT_COMPLETED",
            )

        context = context or {}
        label = context.get("reference_label") or REFERENCE_DISPLAY_NAMES.get(
            transaction.reference_type, "Payment"
        )
        idempotency_key = f"{cls.PAYMENT_COMPLETED}:{transaction.id}"

        notification, created = Notification.objects.get_or_create(
            idempotency_key=idempotency_key,
            defaults={
                "recipient": user,
                "notification_type": cls.PAYMENT_COMPLETED,
                "title": "Payment Successful",
                "body": (
                    f"Your payment of {transaction.currency} {transaction.amount} "
                    f"for {label} was successful. "
                    f"Transaction: {transaction.transaction_number}"
                ),
                "data": {
                    "transaction_id": str(transaction.id),
                    "transaction_number": transaction.transaction_number,
                    "reference_type": transaction.reference_type,
                    "reference_id": transaction.reference_id,
                    "amount": str(transaction.amount),
                    **{k: v for k, v in context.items() if k != "reference_label"},
                },
                "email_status": (
                    EmailStatus.PENDING if user.email else EmailStatus.SKIPPED
                ),
            },
        )

        if not created:
            cls.get_logger().info(
                "Payment notification already exists",
                extra={
                    "notification_id": str(notification.id),
                    "transaction_id": str(transaction.id),
                },
            )
            return ServiceResult.success(notification)

        if notification.email_status == EmailStatus.PENDING:
            from notifications.tasks import send_notification_email

            notification_id = str(notification.id)
            db_transaction.on_commit(
                lambda: send_notification_email.delay(notification_id)
            )

        cls.get_logger().info(
            "Payment notification created",
            extra={
                "notification_id": str(notification.id),
                "transaction_id": str(transaction.id),
                "user_id": user.pk,
            },
        )
        return ServiceResult.success(notification)
