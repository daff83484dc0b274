"""
Factory Boy factories for notification models.

Usage:
    from notifications.tests.factories import NotificationFactory

    notification = NotificationFactory(recipient=user)
"""

import factory

from authentication.tests.factories import UserFactory
from notifications.models import EmailStatus, Notification


class NotificationFactory(factory.django.DjangoModelFactory):
    """Payment-completed notification awaiting its email mirror."""

    class Meta:
        model = Notification

    recipient = factory.SubFactory(UserFactory)
    notification_type = "payment_completed"
    title = "Payment Successful"
    body = factory.Sequence(lambda n: f"Your payment of INR 500.00 for Membership was successful. Transaction: PT-{n}")
    data = factory.LazyFunction(dict)
    idempotency_key = factory.Sequence(lambda n: f"payment_completed:test-{n}")
    email_status = EmailStatus.PENDING
