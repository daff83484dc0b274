"""
Payment admin configuration.

Ledger rows are read-only here: state changes go through the payment
engine. Admin actions re-queue the Celery work that follows a payment
(webhook processing, invoice, notification) for operator recovery.
"""

from django.contrib import admin

from payments.models import ActivityLog, PaymentInvoice, PaymentTransaction, PaymentWebhook
from payments.state_machines import TransactionStatus, WebhookStatus

__all__ = [
    "ActivityLogAdmin",
    "PaymentInvoiceAdmin",
    "PaymentTransactionAdmin",
    "PaymentWebhookAdmin",
]


class PaymentWebhookInline(admin.TabularInline):
    """Callbacks that resolved to a transaction."""

    model = PaymentWebhook
    fk_name = "transaction"
    extra = 0
    fields = ["event_type", "status", "outcome", "is_signature_valid", "created_at"]
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentTransaction.

    Transactions are never deleted or edited through admin.
    """

    list_display = [
        "transaction_number",
        "user",
        "amount_display",
        "reference_type",
        "reference_id",
        "status",
        "provider",
        "created_at",
    ]
    list_filter = ["status", "reference_type", "provider", "created_at"]
    search_fields = [
        "id",
        "transaction_number",
        "provider_order_id",
        "provider_payment_id",
        "user__email",
        "reference_id",
    ]
    readonly_fields = [
        "id",
        "transaction_number",
        "user",
        "amount",
        "currency",
        "description",
        "reference_type",
        "reference_id",
        "breakdown",
        "metadata",
        "status",
        "provider",
        "provider_order_id",
        "provider_payment_id",
        "provider_order_data",
        "provider_payment_data",
        "failure_reason",
        "initiated_at",
        "expires_at",
        "completed_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [PaymentWebhookInline]
    actions = ["requeue_follow_ups"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "transaction_number", "user", "status"),
            },
        ),
        (
            "Amount",
            {
                "fields": ("amount", "currency", "description", "breakdown"),
            },
        ),
        (
            "Reference",
            {
                "fields": ("reference_type", "reference_id", "metadata"),
            },
        ),
        (
            "Gateway",
            {
                "fields": (
                    "provider",
                    "provider_order_id",
                    "provider_payment_id",
                    "failure_reason",
                ),
            },
        ),
        (
            "Gateway Data",
            {
                "fields": ("provider_order_data", "provider_payment_data"),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("initiated_at", "expires_at", "completed_at", "created_at", "updated_at"),
            },
        ),
    )

    @admin.display(description="Amount")
    def amount_display(self, obj: PaymentTransaction) -> str:
        return f"{obj.currency} {obj.amount}"

    @admin.action(description="Re-queue invoice, notification and follow-up tasks")
    def requeue_follow_ups(self, request, queryset):
        from payments.services import get_payment_engine
        from payments.strategies import get_reference

        engine = get_payment_engine()
        count = 0
        for txn in queryset.filter(status=TransactionStatus.COMPLETED):
            engine.queue_follow_ups(txn.id, get_reference(txn.reference_type).follow_up_tasks)
            count += 1
        self.message_user(request, f"Queued follow-up tasks for {count} completed transaction(s).")

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(PaymentWebhook)
class PaymentWebhookAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentWebhook.

    Callbacks are immutable once received; failed ones can be re-queued.
    """

    list_display = [
        "id",
        "provider",
        "event_type",
        "status",
        "outcome",
        "is_signature_valid",
        "transaction",
        "created_at",
    ]
    list_filter = ["provider", "status", "outcome", "is_signature_valid", "created_at"]
    search_fields = ["id", "provider_event_id", "event_type", "transaction__transaction_number"]
    readonly_fields = [
        "id",
        "provider",
        "event_type",
        "provider_event_id",
        "raw_payload_text",
        "payload",
        "signature",
        "is_signature_valid",
        "status",
        "outcome",
        "transaction",
        "processed_at",
        "error_message",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["requeue_processing"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "provider", "event_type", "provider_event_id", "status", "outcome"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("transaction", "is_signature_valid", "processed_at"),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_message",),
                "classes": ("collapse",),
            },
        ),
        (
            "Payload",
            {
                "fields": ("raw_payload_text", "payload", "signature"),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    @admin.display(description="Raw payload")
    def raw_payload_text(self, obj):
        return bytes(obj.raw_payload or b"").decode("utf-8", errors="replace")

    @admin.action(description="Re-queue processing for unprocessed webhooks")
    def requeue_processing(self, request, queryset):
        from payments.tasks import process_payment_webhook

        count = 0
        for webhook in queryset.exclude(status=WebhookStatus.PROCESSED):
            process_payment_webhook.delay(str(webhook.id))
            count += 1
        self.message_user(request, f"Queued {count} webhook(s) for processing.")

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhooks (audit trail)."""
        return False


@admin.register(PaymentInvoice)
class PaymentInvoiceAdmin(admin.ModelAdmin):
    list_display = [
        "invoice_number",
        "transaction",
        "status",
        "email_sent_to",
        "email_resend_count",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["invoice_number", "transaction__transaction_number", "email_sent_to"]
    readonly_fields = [
        "id",
        "transaction",
        "invoice_number",
        "invoice_data",
        "status",
        "pdf_url",
        "pdf_generated_at",
        "email_sent_to",
        "email_sent_at",
        "email_resend_count",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ["action", "entity_type", "entity_id", "user", "created_at"]
    list_filter = ["action", "entity_type", "created_at"]
    search_fields = ["entity_id", "user__email"]
    readonly_fields = ["user", "action", "entity_type", "entity_id", "details", "created_at", "updated_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False
