"""
Tests for payment Celery tasks.

Tasks are called directly (synchronously) so each one is exercised in
isolation from the on_commit queueing that schedules it.
"""

from unittest.mock import patch

import pytest

from events.models import EventRegistration
from merchandise.models import MerchandiseOrder
from merchandise.tests.factories import CartItemFactory, MerchandiseFactory
from notifications.models import Notification
from payments.exceptions import SideEffectError
from payments.models import PaymentInvoice
from payments.state_machines import InvoiceStatus, TransactionStatus, WebhookOutcome, WebhookStatus
from payments.strategies import calculate, get_reference
from payments.tasks import (
    generate_transaction_invoice,
    issue_merchandise_pickup_code,
    issue_registration_access_code,
    process_payment_webhook,
    send_payment_notification,
)
from payments.tests.factories import PaymentTransactionFactory


@pytest.mark.django_db
class TestProcessPaymentWebhook:
    def test_processes_stored_webhook(self, webhook_processor, initiated_membership, razorpay_webhook):
        txn = initiated_membership.transaction
        body, signature = razorpay_webhook("payment.captured", txn.provider_order_id, "pay_task", 50000)
        webhook = webhook_processor.receive("razorpay", body, signature)

        result = process_payment_webhook(str(webhook.id))

        assert result == {
            "status": WebhookStatus.PROCESSED,
            "outcome": WebhookOutcome.COMPLETED,
            "webhook_id": str(webhook.id),
        }
        txn.refresh_from_db()
        assert txn.status == TransactionStatus.COMPLETED

    def test_rerun_is_a_no_op(self, webhook_processor, initiated_membership, razorpay_webhook):
        txn = initiated_membership.transaction
        body, signature = razorpay_webhook("payment.captured", txn.provider_order_id, "pay_task", 50000)
        webhook = webhook_processor.receive("razorpay", body, signature)

        process_payment_webhook(str(webhook.id))
        result = process_payment_webhook(str(webhook.id))

        assert result["outcome"] == WebhookOutcome.COMPLETED

    def test_unknown_webhook(self):
        webhook_id = "00000000-0000-4000-8000-000000000000"

        assert process_payment_webhook(webhook_id) == {"status": "not_found", "webhook_id": webhook_id}


@pytest.mark.django_db
class TestGenerateTransactionInvoice:
    def test_generates_renders_and_emails(self, mailoutbox):
        txn = PaymentTransactionFactory(completed=True)

        result = generate_transaction_invoice(str(txn.id))

        invoice = PaymentInvoice.objects.get(transaction=txn)
        assert result == {
            "status": InvoiceStatus.EMAILED,
            "invoice_number": invoice.invoice_number,
            "transaction_id": str(txn.id),
        }
        assert invoice.pdf_url.endswith(f"{invoice.invoice_number}.pdf")
        assert len(mailoutbox) == 1

    def test_rerun_does_not_email_again(self, mailoutbox):
        txn = PaymentTransactionFactory(completed=True)

        generate_transaction_invoice(str(txn.id))
        generate_transaction_invoice(str(txn.id))

        assert PaymentInvoice.objects.filter(transaction=txn).count() == 1
        assert len(mailoutbox) == 1

    def test_skipped_for_pending_transaction(self):
        txn = PaymentTransactionFactory()

        result = generate_transaction_invoice(str(txn.id))

        assert result == {"status": "skipped", "transaction_id": str(txn.id)}
        assert not PaymentInvoice.objects.exists()


@pytest.mark.django_db
class TestSendPaymentNotification:
    def test_creates_one_notification(self):
        txn = PaymentTransactionFactory(completed=True)

        first = send_payment_notification(str(txn.id))
        second = send_payment_notification(str(txn.id))

        notification = Notification.objects.get(recipient=txn.user)
        assert first["status"] == "sent"
        assert first["notification_id"] == second["notification_id"] == str(notification.id)
        assert notification.idempotency_key == f"payment_completed:{txn.id}"
        assert "Membership" in notification.body
        assert txn.transaction_number in notification.body

    def test_skipped_for_failed_transaction(self):
        txn = PaymentTransactionFactory(failed=True)

        assert send_payment_notification(str(txn.id))["status"] == "skipped"
        assert not Notification.objects.exists()


@pytest.mark.django_db
class TestIssueRegistrationAccessCode:
    def test_issues_code_once(self, user, registration):
        txn = PaymentTransactionFactory(
            completed=True,
            user=user,
            reference_type="EVENT_REGISTRATION",
            reference_id=str(registration.id),
        )

        result = issue_registration_access_code(str(txn.id))
        again = issue_registration_access_code(str(txn.id))

        registration.refresh_from_db()
        assert result["status"] == "issued"
        assert result["access_code"] == registration.access_code
        assert registration.access_code.startswith("EVT-")
        assert len(registration.access_code) == 14
        assert again["access_code"] == registration.access_code

    def test_event_payment_registration(self, user, open_event):
        calculation = calculate("EVENT_PAYMENT", str(open_event.id), user)
        txn = PaymentTransactionFactory(
            completed=True,
            user=user,
            reference_type=calculation.reference_type,
            reference_id=calculation.reference_id,
            amount=calculation.total,
            breakdown=calculation.breakdown_data(),
            metadata=calculation.metadata_data(),
        )
        get_reference("EVENT_PAYMENT").apply_completion_side_effects(txn)

        result = issue_registration_access_code(str(txn.id))

        registration = EventRegistration.objects.get(event=open_event, user=user)
        assert registration.access_code == result["access_code"]

    def test_missing_registration_raises(self, user):
        txn = PaymentTransactionFactory(
            completed=True,
            user=user,
            reference_type="EVENT_REGISTRATION",
            reference_id="999999",
        )

        with pytest.raises(SideEffectError):
            issue_registration_access_code(str(txn.id))


@pytest.mark.django_db
class TestIssueMerchandisePickupCode:
    def test_issues_code(self, user):
        CartItemFactory(user=user, merchandise=MerchandiseFactory(), quantity=1)
        calculation = calculate("MERCHANDISE_ORDER", str(user.id), user)
        txn = PaymentTransactionFactory(
            completed=True,
            user=user,
            reference_type=calculation.reference_type,
            reference_id=calculation.reference_id,
            amount=calculation.total,
            breakdown=calculation.breakdown_data(),
            metadata=calculation.metadata_data(),
        )
        get_reference("MERCHANDISE_ORDER").apply_completion_side_effects(txn)

        result = issue_merchandise_pickup_code(str(txn.id))

        order = MerchandiseOrder.objects.get(payment_transaction=txn)
        assert result["pickup_code"] == order.pickup_code
        assert order.pickup_code.startswith("PICK-")

    def test_skipped_for_pending_transaction(self):
        txn = PaymentTransactionFactory(reference_type="MERCHANDISE_ORDER")

        assert issue_merchandise_pickup_code(str(txn.id))["status"] == "skipped"


@pytest.mark.django_db
def test_follow_up_failure_does_not_touch_transaction(mailoutbox):
    txn = PaymentTransactionFactory(completed=True)

    with patch("payments.services.InvoiceService.send_invoice_email", side_effect=SideEffectError("SMTP down")):
        result = generate_transaction_invoice(str(txn.id))

    txn.refresh_from_db()
    assert result["status"] == "failed"
    assert txn.status == TransactionStatus.COMPLETED
