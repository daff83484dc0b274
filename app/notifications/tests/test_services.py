"""
Tests for NotificationService.

Verifies:
- One notification per transaction
- Email mirror queued after commit
- Users without email are skipped
"""

import pytest

from authentication.tests.factories import UserFactory
from notifications.models import EmailStatus, Notification
from notifications.services import NotificationService
from payments.tests.factories import PaymentTransactionFactory


@pytest.mark.django_db
class TestNotificationServiceSend:
    def test_creates_notification(self, mocker, django_capture_on_commit_callbacks):
        txn = PaymentTransactionFactory(completed=True)
        mock_email = mocker.patch("notifications.tasks.send_notification_email.delay")

        with django_capture_on_commit_callbacks(execute=True):
            result = NotificationService.send(txn.user, txn)

        assert result.success
        notification = result.data
        assert notification.recipient == txn.user
        assert notification.title == "Payment Successful"
        assert "INR 500.00 for Membership" in notification.body
        assert notification.data["transaction_id"] == str(txn.id)
        assert notification.data["amount"] == "500.00"
        assert notification.email_status == EmailStatus.PENDING
        mock_email.assert_called_once_with(str(notification.id))

    def test_reference_label_override(self, mocker):
        mocker.patch("notifications.tasks.send_notification_email.delay")
        txn = PaymentTransactionFactory(completed=True)

        result = NotificationService.send(
            txn.user,
            txn,
            {"reference_label": "Annual Membership", "membership_year": 2026},
        )

        assert "for Annual Membership was" in result.data.body
        assert result.data.data["membership_year"] == 2026
        assert "reference_label" not in result.data.data

    def test_second_send_returns_existing(self, mocker, django_capture_on_commit_callbacks):
        mock_email = mocker.patch("notifications.tasks.send_notification_email.delay")
        txn = PaymentTransactionFactory(completed=True)

        with django_capture_on_commit_callbacks(execute=True):
            first = NotificationService.send(txn.user, txn)
            second = NotificationService.send(txn.user, txn)

        assert first.data.id == second.data.id
        assert Notification.objects.count() == 1
        mock_email.assert_called_once()

    def test_user_without_email_skips_mirror(self, mocker, django_capture_on_commit_callbacks):
        mock_email = mocker.patch("notifications.tasks.send_notification_email.delay")
        txn = PaymentTransactionFactory(completed=True, user=UserFactory())
        txn.user.email = ""

        with django_capture_on_commit_callbacks(execute=True):
            result = NotificationService.send(txn.user, txn)

        assert result.data.email_status == EmailStatus.SKIPPED
        mock_email.assert_not_called()

    def test_pending_transaction_is_rejected(self, mocker):
        mock_email = mocker.patch("notifications.tasks.send_notification_email.delay")
        txn = PaymentTransactionFactory()

        result = NotificationService.send(txn.user, txn)

        assert not result
        assert result.error_code == "TRANSACTION_NOT_COMPLETED"
        assert not Notification.objects.exists()
        mock_email.assert_not_called()
