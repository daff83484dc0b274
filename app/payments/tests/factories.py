"""
Factory Boy factories for payment test data.

Usage:
    from payments.tests.factories import PaymentTransactionFactory

    # Pending membership payment with a gateway order
    txn = PaymentTransactionFactory()

    # Completed transaction
    txn = PaymentTransactionFactory(completed=True)

    # Overdue pending transaction
    txn = PaymentTransactionFactory(expired=True)
"""

from datetime import timedelta
from decimal import Decimal

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from payments.models import PaymentInvoice, PaymentTransaction, PaymentWebhook
from payments.state_machines import (
    InvoiceStatus,
    PaymentProviderName,
    ReferenceType,
    TransactionStatus,
)


class PaymentTransactionFactory(factory.django.DjangoModelFactory):
    """
    Factory for PaymentTransaction.

    Defaults to a PENDING Razorpay membership payment of 500.00.
    """

    class Meta:
        model = PaymentTransaction

    transaction_number = factory.Sequence(lambda n: f"PT-20260101-T{n:05d}")
    user = factory.SubFactory(UserFactory)
    amount = Decimal("500.00")
    currency = "INR"
    description = "Membership fee"
    reference_type = ReferenceType.MEMBERSHIP
    reference_id = factory.LazyAttribute(lambda o: str(o.user.pk))
    breakdown = factory.LazyAttribute(
        lambda o: {"membership_fee": str(o.amount), "total": str(o.amount)}
    )
    metadata = factory.LazyFunction(
        lambda: {"membership_year": timezone.now().year, "batch_year": 2015, "fee_type": "ANNUAL"}
    )
    status = TransactionStatus.PENDING
    provider = PaymentProviderName.RAZORPAY
    provider_order_id = factory.Sequence(lambda n: f"order_factory{n:05d}")
    initiated_at = factory.LazyFunction(timezone.now)
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(minutes=30))

    class Params:
        completed = factory.Trait(
            status=TransactionStatus.COMPLETED,
            provider_payment_id=factory.Sequence(lambda n: f"pay_factory{n:05d}"),
            completed_at=factory.LazyFunction(timezone.now),
        )
        failed = factory.Trait(
            status=TransactionStatus.FAILED,
            failure_reason="Payment declined by bank",
        )
        expired = factory.Trait(
            initiated_at=factory.LazyFunction(lambda: timezone.now() - timedelta(hours=1)),
            expires_at=factory.LazyFunction(lambda: timezone.now() - timedelta(minutes=30)),
        )


class PaymentWebhookFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PaymentWebhook

    provider = PaymentProviderName.RAZORPAY
    event_type = "payment.captured"
    raw_payload = b"{}"
    payload = factory.LazyFunction(dict)
    signature = ""


class PaymentInvoiceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PaymentInvoice

    transaction = factory.SubFactory(PaymentTransactionFactory, completed=True)
    invoice_number = factory.Sequence(lambda n: f"INV-20260101-T{n:05d}")
    invoice_data = factory.LazyFunction(dict)
    status = InvoiceStatus.GENERATED
