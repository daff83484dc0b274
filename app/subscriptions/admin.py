"""
Django admin configuration for subscription models.
"""

from django.contrib import admin

from subscriptions.models import (
    Organization,
    OrganizationSubscription,
    PaymentRequestStatus,
    SubscriptionPaymentRequest,
    SubscriptionPlan,
)


@admin.register(SubscriptionPlan)
class SubscriptionPlanAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "monthly_price", "yearly_price", "is_active")
    list_filter = ("is_active",)


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "created_at")
    search_fields = ("name", "owner__email")
    raw_id_fields = ("owner",)


@admin.register(OrganizationSubscription)
class OrganizationSubscriptionAdmin(admin.ModelAdmin):
    list_display = ("organization", "plan", "billing_cycle", "status", "end_date")
    list_filter = ("status", "billing_cycle")


@admin.register(SubscriptionPaymentRequest)
class SubscriptionPaymentRequestAdmin(admin.ModelAdmin):
    list_display = (
        "organization",
        "request_type",
        "requested_plan",
        "amount",
        "status",
        "paid_at",
    )
    list_filter = ("status", "request_type")
    actions = ["approve"]

    @admin.action(description="Approve selected payment requests")
    def approve(self, request, queryset):
        updated = queryset.filter(status=PaymentRequestStatus.PENDING).update(
            status=PaymentRequestStatus.APPROVED
        )
        self.message_user(request, f"Approved {updated} request(s).")
