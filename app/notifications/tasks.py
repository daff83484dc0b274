"""
Celery tasks for notification delivery.

Tasks:
    send_notification_email: Mirror a notification to the recipient's email

Tasks are idempotent: re-running for a notification whose email was
already sent or skipped is a no-op.
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils import timezone

from notifications.models import EmailStatus, Notification

logger = logging.getLogger(__name__)

MAX_EMAIL_RETRIES = 3


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_EMAIL_RETRIES},
    acks_late=True,
)
def send_notification_email(self, notification_id: str) -> dict:
    """
    Send the email mirror of a notification.

    Returns:
        Dict with the delivery outcome
    """
    try:
        notification = Notification.objects.select_related("recipient").get(
            id=notification_id
        )
    except Notification.DoesNotExist:
        logger.warning(
            "Notification not found for email delivery",
            extra={"notification_id": notification_id},
        )
        return {"status": "not_found", "notification_id": notification_id}

    if notification.email_status != EmailStatus.PENDING:
        return {"status": notification.email_status, "notification_id": notification_id}

    message = EmailMultiAlternatives(
        subject=notification.title,
        body=notification.body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[notification.recipient.email],
    )

    try:
        message.send(fail_silently=False)
    except (SMTPException, ConnectionError) as e:
        notification.email_failure_reason = str(e)
        if self.request.retries >= MAX_EMAIL_RETRIES:
            notification.email_status = EmailStatus.FAILED
        notification.save(update_fields=["email_status", "email_failure_reason", "updated_at"])
        logger.warning(
            "Notification email failed",
            extra={
                "notification_id": notification_id,
                "retries": self.request.retries,
                "error": str(e),
            },
        )
        raise

    notification.email_status = EmailStatus.SENT
    notification.email_sent_at = timezone.now()
    notification.save(update_fields=["email_status", "email_sent_at", "updated_at"])

    logger.info(
        "Notification email sent",
        extra={"notification_id": notification_id},
    )
    return {"status": "sent", "notification_id": notification_id}
