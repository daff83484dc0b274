"""
Tests for notification Celery tasks.
"""

from smtplib import SMTPException

import pytest

from notifications.models import EmailStatus
from notifications.tasks import send_notification_email
from notifications.tests.factories import NotificationFactory


@pytest.mark.django_db
class TestSendNotificationEmail:
    def test_sends_pending_email(self, mailoutbox):
        notification = NotificationFactory()

        result = send_notification_email(str(notification.id))

        notification.refresh_from_db()
        assert result == {"status": "sent", "notification_id": str(notification.id)}
        assert notification.email_status == EmailStatus.SENT
        assert notification.email_sent_at is not None
        assert len(mailoutbox) == 1
        assert mailoutbox[0].subject == "Payment Successful"
        assert mailoutbox[0].to == [notification.recipient.email]

    def test_already_sent_is_a_no_op(self, mailoutbox):
        notification = NotificationFactory(email_status=EmailStatus.SENT)

        result = send_notification_email(str(notification.id))

        assert result["status"] == EmailStatus.SENT
        assert mailoutbox == []

    def test_missing_notification(self):
        notification_id = "00000000-0000-4000-8000-000000000000"

        assert send_notification_email(notification_id) == {
            "status": "not_found",
            "notification_id": notification_id,
        }

    def test_smtp_failure_is_recorded_and_raised(self, mocker):
        notification = NotificationFactory()
        mocker.patch(
            "notifications.tasks.EmailMultiAlternatives.send",
            side_effect=SMTPException("connection refused"),
        )

        with pytest.raises(SMTPException):
            send_notification_email(str(notification.id))

        notification.refresh_from_db()
        assert notification.email_failure_reason == "connection refused"
        assert notification.email_status == EmailStatus.PENDING
