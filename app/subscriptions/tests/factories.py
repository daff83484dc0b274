"""
Factory Boy factories for subscriptions models.
"""

from datetime import timedelta
from decimal import Decimal

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from subscriptions.models import (
    BillingCycle,
    Organization,
    OrganizationSubscription,
    PaymentRequestStatus,
    PaymentRequestType,
    SubscriptionPaymentRequest,
    SubscriptionPlan,
    SubscriptionStatus,
)


class SubscriptionPlanFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = SubscriptionPlan

    name = factory.Sequence(lambda n: f"Plan {n}")
    code = factory.Sequence(lambda n: f"plan-{n}")
    monthly_price = Decimal("999.00")
    yearly_price = Decimal("9999.00")
    is_active = True


class OrganizationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Organization

    name = factory.Sequence(lambda n: f"Chapter {n}")
    owner = factory.SubFactory(UserFactory)


class OrganizationSubscriptionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = OrganizationSubscription

    organization = factory.SubFactory(OrganizationFactory)
    plan = factory.SubFactory(SubscriptionPlanFactory)
    billing_cycle = BillingCycle.YEARLY
    status = SubscriptionStatus.ACTIVE
    start_date = factory.LazyFunction(lambda: timezone.now() - timedelta(days=300))
    end_date = factory.LazyFunction(lambda: timezone.now() + timedelta(days=65))


class SubscriptionPaymentRequestFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = SubscriptionPaymentRequest

    organization = factory.SubFactory(OrganizationFactory)
    subscription = None
    requested_plan = factory.SubFactory(SubscriptionPlanFactory)
    request_type = PaymentRequestType.RENEWAL
    billing_cycle = BillingCycle.YEARLY
    amount = Decimal("9999.00")
    status = PaymentRequestStatus.APPROVED
