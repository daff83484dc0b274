"""
Subscription payables.

SUBSCRIPTION_NEW: an organization owner buys a plan (reference id is
    the organization).
SUBSCRIPTION_RENEWAL / SUBSCRIPTION_UPGRADE: pay an approved
    SubscriptionPaymentRequest (reference id is the request).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any

from django.utils import timezone

from payments.exceptions import PaymentValidationError
from payments.state_machines import ReferenceType
from payments.strategies.base import (
    ZERO,
    FeeCalculation,
    PayableReference,
    get_or_not_found,
    line_item,
    money,
    register,
)
from subscriptions.models import (
    CYCLE_DURATIONS,
    BillingCycle,
    Organization,
    OrganizationSubscription,
    PaymentRequestStatus,
    PaymentRequestType,
    SubscriptionPaymentRequest,
    SubscriptionPlan,
    SubscriptionStatus,
)

if TYPE_CHECKING:
    from authentication.models import User
    from payments.models import PaymentTransaction


@register
class SubscriptionNewReference(PayableReference):
    reference_type = ReferenceType.SUBSCRIPTION_NEW
    display_name = "Subscription"

    def calculate(self, reference_id: str, user: User, context: dict[str, Any] | None = None) -> FeeCalculation:
        context = context or {}
        organization = get_or_not_found(
            Organization.objects.all(),
            "Organization not found",
            id=reference_id,
            owner=user,
        )
        if organization.active_subscription() is not None:
            raise PaymentValidationError(
                "Organization already has an active subscription",
                error_code="SUBSCRIPTION_EXISTS",
                details={"organization_id": organization.id},
            )

        billing_cycle = context.get("billing_cycle") or BillingCycle.YEARLY
        if billing_cycle not in BillingCycle.values:
            raise PaymentValidationError(
                f"Invalid billing cycle: {billing_cycle}",
                error_code="INVALID_BILLING_CYCLE",
                details={"allowed": list(BillingCycle.values)},
            )

        plan_id = str(context.get("plan_id") or "")
        plan = None
        if plan_id.isdigit():
            plan = SubscriptionPlan.objects.filter(id=plan_id, is_active=True).first()
        if plan is None:
            raise PaymentValidationError(
                "Subscription plan not found",
                error_code="INVALID_PLAN",
                details={"plan_id": plan_id},
            )

        price = money(plan.price_for(billing_cycle))
        if price <= ZERO:
            raise PaymentValidationError(
                "Plan has no price for this billing cycle",
                error_code="INVALID_AMOUNT",
                details={"plan_id": plan.id, "billing_cycle": billing_cycle},
            )

        return FeeCalculation(
            reference_type=self.reference_type,
            reference_id=reference_id,
            breakdown={
                "plan_price": price,
                "total": price,
            },
            items=[line_item(f"{plan.name} ({billing_cycle.lower()})", price)],
            payer=user,
            metadata={
                "organization_id": organization.id,
                "plan_id": plan.id,
                "plan_code": plan.code,
                "billing_cycle": billing_cycle,
            },
            description=f"{plan.name} subscription for {organization.name}",
        )

    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        metadata = transaction.metadata
        start = transaction.completed_at or timezone.now()
        subscription = OrganizationSubscription.objects.create(
            organization_id=metadata["organization_id"],
            plan_id=metadata["plan_id"],
            billing_cycle=metadata["billing_cycle"],
            status=SubscriptionStatus.ACTIVE,
            start_date=start,
            end_date=start + CYCLE_DURATIONS[metadata["billing_cycle"]],
        )
        self.get_logger().info(
            "Subscription created",
            extra={"subscription_id": subscription.id, "transaction_id": str(transaction.id)},
        )


class SubscriptionRequestReference(PayableReference):
    """Shared handling for approved renewal and upgrade requests."""

    request_type: str = ""

    def calculate(self, reference_id: str, user: User, context: dict[str, Any] | None = None) -> FeeCalculation:
        request = get_or_not_found(
            SubscriptionPaymentRequest.objects.select_related("organization", "requested_plan"),
            "Subscription payment request not found",
            id=reference_id,
            organization__owner=user,
        )
        if request.status == PaymentRequestStatus.PAID:
            raise PaymentValidationError(
                "Payment request is already paid",
                error_code="ALREADY_PAID",
                details={"request_id": request.id},
            )
        if request.status != PaymentRequestStatus.APPROVED:
            raise PaymentValidationError(
                "Payment request is not approved",
                error_code="REQUEST_NOT_APPROVED",
                details={"request_id": request.id, "status": request.status},
            )
        if request.request_type != self.request_type:
            raise PaymentValidationError(
                "Payment request type does not match",
                error_code="REQUEST_TYPE_MISMATCH",
                details={"request_id": request.id, "request_type": request.request_type},
            )

        amount = money(request.amount)
        if amount <= ZERO:
            raise PaymentValidationError(
                "Payment request amount must be greater than zero",
                error_code="INVALID_AMOUNT",
                details={"request_id": request.id},
            )

        return FeeCalculation(
            reference_type=self.reference_type,
            reference_id=reference_id,
            breakdown={
                "subscription_amount": amount,
                "total": amount,
            },
            items=[line_item(f"{self.display_name} - {request.requested_plan.name}", amount)],
            payer=user,
            metadata={
                "organization_id": request.organization_id,
                "request_id": request.id,
                "plan_id": request.requested_plan_id,
                "billing_cycle": request.billing_cycle,
            },
            description=f"{self.display_name} for {request.organization.name}",
        )

    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        request = (
            SubscriptionPaymentRequest.objects.select_for_update()
            .select_related("subscription", "organization")
            .get(id=transaction.reference_id)
        )
        now = transaction.completed_at or timezone.now()
        request.status = PaymentRequestStatus.PAID
        request.paid_at = now
        request.save(update_fields=["status", "paid_at", "updated_at"])

        subscription = request.subscription or request.organization.active_subscription()
        if subscription is None:
            subscription = OrganizationSubscription.objects.create(
                organization=request.organization,
                plan_id=request.requested_plan_id,
                billing_cycle=request.billing_cycle,
                status=SubscriptionStatus.ACTIVE,
                start_date=now,
                end_date=now + CYCLE_DURATIONS[request.billing_cycle],
            )
        else:
            self.update_subscription(subscription, request, now)
            subscription.save()

        self.get_logger().info(
            "Subscription payment request paid",
            extra={
                "request_id": request.id,
                "subscription_id": subscription.id,
                "transaction_id": str(transaction.id),
            },
        )

    @abstractmethod
    def update_subscription(self, subscription, request, now) -> None:
        """Apply a paid request to an existing subscription. Caller saves."""


@register
class SubscriptionRenewalReference(SubscriptionRequestReference):
    reference_type = ReferenceType.SUBSCRIPTION_RENEWAL
    display_name = "Subscription Renewal"
    request_type = PaymentRequestType.RENEWAL

    def update_subscription(self, subscription, request, now) -> None:
        # Renewing early extends from the current end date
        base = max(subscription.end_date, now)
        subscription.end_date = base + CYCLE_DURATIONS[request.billing_cycle]
        subscription.billing_cycle = request.billing_cycle
        subscription.plan_id = request.requested_plan_id
        subscription.status = SubscriptionStatus.ACTIVE


@register
class SubscriptionUpgradeReference(SubscriptionRequestReference):
    reference_type = ReferenceType.SUBSCRIPTION_UPGRADE
    display_name = "Subscription Upgrade"
    request_type = PaymentRequestType.PLAN_UPGRADE

    def update_subscription(self, subscription, request, now) -> None:
        subscription.plan_id = request.requested_plan_id
        subscription.billing_cycle = request.billing_cycle
        subscription.status = SubscriptionStatus.ACTIVE
