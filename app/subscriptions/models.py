"""
Organization subscription models.

- SubscriptionPlan: A plan with monthly and yearly prices
- Organization: A subscribing organization owned by a user
- OrganizationSubscription: An organization's plan subscription
- SubscriptionPaymentRequest: An admin-approved renewal/upgrade charge

New subscriptions are paid against an organization (SUBSCRIPTION_NEW);
renewals and upgrades are paid against an approved payment request.
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from django.conf import settings
from django.db import models

from core.models import BaseModel


class BillingCycle(models.TextChoices):
    MONTHLY = "MONTHLY", "Monthly"
    YEARLY = "YEARLY", "Yearly"


class SubscriptionStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    EXPIRED = "expired", "Expired"
    CANCELLED = "cancelled", "Cancelled"


class PaymentRequestType(models.TextChoices):
    RENEWAL = "RENEWAL", "Renewal"
    PLAN_UPGRADE = "PLAN_UPGRADE", "Plan Upgrade"


class PaymentRequestStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    PAID = "paid", "Paid"


CYCLE_DURATIONS = {
    BillingCycle.MONTHLY: datetime.timedelta(days=30),
    BillingCycle.YEARLY: datetime.timedelta(days=365),
}


class SubscriptionPlan(BaseModel):
    """A subscription plan."""

    name = models.CharField(
        max_length=100,
        help_text="Plan name",
    )
    code = models.SlugField(
        max_length=50,
        unique=True,
        help_text="Stable plan identifier",
    )
    monthly_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Price per month",
    )
    yearly_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Price per year",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether the plan can be purchased",
    )

    class Meta:
        ordering = ["monthly_price"]

    def __str__(self) -> str:
        return self.name

    def price_for(self, billing_cycle: str) -> Decimal:
        if billing_cycle == BillingCycle.MONTHLY:
            return self.monthly_price
        return self.yearly_price


class Organization(BaseModel):
    """An organization that subscribes to a plan."""

    name = models.CharField(
        max_length=200,
        help_text="Organization name",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="organizations",
        help_text="User who administers and pays for the organization",
    )

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def active_subscription(self):
        return self.subscriptions.filter(status=SubscriptionStatus.ACTIVE).first()


class OrganizationSubscription(BaseModel):
    """An organization's subscription to a plan."""

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="subscriptions",
        help_text="Subscribing organization",
    )
    plan = models.ForeignKey(
        SubscriptionPlan,
        on_delete=models.PROTECT,
        related_name="subscriptions",
        help_text="Subscribed plan",
    )
    billing_cycle = models.CharField(
        max_length=10,
        choices=BillingCycle.choices,
        default=BillingCycle.YEARLY,
        help_text="Billing cycle",
    )
    status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE,
        db_index=True,
        help_text="Subscription status",
    )
    start_date = models.DateTimeField(
        help_text="Start of the current period",
    )
    end_date = models.DateTimeField(
        help_text="End of the current period",
    )

    class Meta:
        ordering = ["-start_date"]

    def __str__(self) -> str:
        return f"{self.organization_id} on {self.plan_id}"


class SubscriptionPaymentRequest(BaseModel):
    """
    A renewal or upgrade charge raised for an organization.

    An administrator approves the request before the owner can pay it.
    """

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="payment_requests",
        help_text="Organization being charged",
    )
    subscription = models.ForeignKey(
        OrganizationSubscription,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="payment_requests",
        help_text="Subscription being renewed or upgraded",
    )
    requested_plan = models.ForeignKey(
        SubscriptionPlan,
        on_delete=models.PROTECT,
        related_name="payment_requests",
        help_text="Plan after renewal/upgrade",
    )
    request_type = models.CharField(
        max_length=20,
        choices=PaymentRequestType.choices,
        help_text="Renewal or upgrade",
    )
    billing_cycle = models.CharField(
        max_length=10,
        choices=BillingCycle.choices,
        default=BillingCycle.YEARLY,
        help_text="Billing cycle of the requested period",
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Amount to charge",
    )
    status = models.CharField(
        max_length=20,
        choices=PaymentRequestStatus.choices,
        default=PaymentRequestStatus.PENDING,
        db_index=True,
        help_text="Approval/payment status",
    )
    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the request was paid",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.request_type} for {self.organization_id}"
