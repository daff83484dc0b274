"""
Tests for payment models.

Tests cover:
- PaymentTransaction FSM transitions and expiry checks
- PaymentWebhook status helpers
- ActivityLog.record
- Database constraints
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import IntegrityError
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from payments.models import ActivityLog
from payments.state_machines import TransactionStatus, WebhookOutcome, WebhookStatus
from payments.tests.factories import PaymentTransactionFactory, PaymentWebhookFactory


@pytest.mark.django_db
class TestPaymentTransactionTransitions:
    def test_complete_from_pending(self):
        txn = PaymentTransactionFactory()

        txn.complete(provider_payment_id="pay_123", provider_payment_data={"status": "captured"})
        txn.save()
        txn.refresh_from_db()

        assert txn.status == TransactionStatus.COMPLETED
        assert txn.provider_payment_id == "pay_123"
        assert txn.provider_payment_data == {"status": "captured"}
        assert txn.completed_at is not None

    def test_fail_records_reason(self):
        txn = PaymentTransactionFactory()

        txn.fail(reason="Card declined", provider_payment_id="pay_9")
        txn.save()
        txn.refresh_from_db()

        assert txn.status == TransactionStatus.FAILED
        assert txn.failure_reason == "Card declined"
        assert txn.provider_payment_id == "pay_9"

    def test_expire_from_pending(self):
        txn = PaymentTransactionFactory(expired=True)

        txn.expire()
        txn.save()

        assert txn.status == TransactionStatus.EXPIRED
        assert txn.is_terminal

    @pytest.mark.parametrize("trait", ["completed", "failed"])
    def test_terminal_states_cannot_complete(self, trait):
        txn = PaymentTransactionFactory(**{trait: True})

        with pytest.raises(TransitionNotAllowed):
            txn.complete(provider_payment_id="pay_again")

    def test_completed_cannot_expire(self):
        txn = PaymentTransactionFactory(completed=True)

        with pytest.raises(TransitionNotAllowed):
            txn.expire()

    def test_is_past_expiry(self):
        txn = PaymentTransactionFactory()

        assert not txn.is_past_expiry()
        assert txn.is_past_expiry(now=txn.expires_at)
        assert txn.is_past_expiry(now=txn.expires_at + timedelta(seconds=1))

    def test_completed_is_never_past_expiry(self):
        txn = PaymentTransactionFactory(completed=True, expires_at=timezone.now() - timedelta(hours=1))

        assert not txn.is_past_expiry()

    def test_str(self):
        txn = PaymentTransactionFactory(transaction_number="PT-20260101-ABC123")

        assert str(txn) == "PT-20260101-ABC123 (PENDING, 500.00 INR)"


@pytest.mark.django_db
class TestPaymentTransactionConstraints:
    def test_amount_must_be_positive(self):
        with pytest.raises(IntegrityError):
            PaymentTransactionFactory(amount=Decimal("0.00"))

    def test_provider_order_id_unique_per_provider(self):
        PaymentTransactionFactory(provider_order_id="order_dup")

        with pytest.raises(IntegrityError):
            PaymentTransactionFactory(provider_order_id="order_dup")

    def test_transactions_without_order_id_do_not_conflict(self):
        PaymentTransactionFactory(provider_order_id=None)
        PaymentTransactionFactory(provider_order_id=None)


@pytest.mark.django_db
class TestPaymentWebhook:
    def test_defaults(self):
        webhook = PaymentWebhookFactory()

        assert webhook.status == WebhookStatus.RECEIVED
        assert webhook.is_signature_valid is None
        assert webhook.outcome == ""

    def test_mark_verified(self):
        webhook = PaymentWebhookFactory()

        webhook.mark_verified()

        assert webhook.status == WebhookStatus.VERIFIED
        assert webhook.is_signature_valid is True

    def test_mark_processed_clears_error(self):
        webhook = PaymentWebhookFactory(error_message="earlier failure")

        webhook.mark_processed(WebhookOutcome.COMPLETED)

        assert webhook.status == WebhookStatus.PROCESSED
        assert webhook.outcome == WebhookOutcome.COMPLETED
        assert webhook.processed_at is not None
        assert webhook.error_message is None

    def test_mark_failed(self):
        webhook = PaymentWebhookFactory()

        webhook.mark_failed("Invalid webhook signature")

        assert webhook.status == WebhookStatus.FAILED
        assert webhook.error_message == "Invalid webhook signature"


@pytest.mark.django_db
def test_activity_log_record():
    txn = PaymentTransactionFactory()

    entry = ActivityLog.record("payment_initiated", txn, user=txn.user, details={"amount": "500.00"})

    assert entry.entity_type == "paymenttransaction"
    assert entry.entity_id == str(txn.id)
    assert entry.user == txn.user
    assert entry.details == {"amount": "500.00"}
