"""
Django admin configuration for membership models.
"""

from django.contrib import admin

from memberships.models import Membership, MembershipFee


@admin.register(MembershipFee)
class MembershipFeeAdmin(admin.ModelAdmin):
    list_display = ("batch_year", "amount", "fee_type", "is_active")
    list_filter = ("is_active",)


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("user", "membership_year", "status", "amount_paid", "valid_until")
    list_filter = ("status", "membership_year")
    search_fields = ("user__email",)
    raw_id_fields = ("user", "payment_transaction")
