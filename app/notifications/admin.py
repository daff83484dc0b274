"""
Django admin configuration for notifications.
"""

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = (
        "notification_type",
        "recipient",
        "title",
        "is_read",
        "email_status",
        "created_at",
    )
    list_filter = ("notification_type", "is_read", "email_status")
    search_fields = ("recipient__email", "title", "idempotency_key")
    raw_id_fields = ("recipient",)
    readonly_fields = ("idempotency_key", "email_sent_at", "email_failure_reason")
