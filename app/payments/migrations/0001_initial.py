# Generated manually - Initial payment transaction models

import uuid

import django.db.models.deletion
import django.utils.timezone
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("transaction_number", models.CharField(help_text="Human-readable number (PT-YYYYMMDD-XXXXXX)", max_length=32, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, help_text="Total amount in major currency units", max_digits=12)),
                ("currency", models.CharField(default="INR", help_text="ISO 4217 currency code", max_length=3)),
                ("description", models.CharField(blank=True, default="", help_text="Description shown to the payer", max_length=255)),
                (
                    "reference_type",
                    models.CharField(
                        choices=[
                            ("EVENT_REGISTRATION", "Event Registration"),
                            ("EVENT_PAYMENT", "Event Payment"),
                            ("MERCHANDISE", "Event Merchandise"),
                            ("MERCHANDISE_ORDER", "Merchandise Order"),
                            ("MEMBERSHIP", "Membership"),
                            ("DONATION", "Donation"),
                            ("SUBSCRIPTION_NEW", "New Subscription"),
                            ("SUBSCRIPTION_RENEWAL", "Subscription Renewal"),
                            ("SUBSCRIPTION_UPGRADE", "Subscription Upgrade"),
                        ],
                        help_text="Kind of thing being paid for",
                        max_length=32,
                    ),
                ),
                ("reference_id", models.CharField(help_text="Identifier of the thing being paid for", max_length=64)),
                ("breakdown", models.JSONField(blank=True, default=dict, help_text="Itemized fee breakdown captured at initiation")),
                ("metadata", models.JSONField(blank=True, default=dict, help_text="Reference-specific data used on completion")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("COMPLETED", "Completed"),
                            ("FAILED", "Failed"),
                            ("EXPIRED", "Expired"),
                        ],
                        db_index=True,
                        default="PENDING",
                        help_text="Current transaction status (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("provider", models.CharField(choices=[("razorpay", "Razorpay"), ("stripe", "Stripe")], help_text="Payment gateway handling this transaction", max_length=20)),
                ("provider_order_id", models.CharField(blank=True, db_index=True, help_text="Gateway order / intent ID", max_length=255, null=True)),
                ("provider_payment_id", models.CharField(blank=True, help_text="Gateway payment ID once paid", max_length=255, null=True)),
                ("provider_order_data", models.JSONField(blank=True, default=dict, help_text="Raw gateway order response")),
                ("provider_payment_data", models.JSONField(blank=True, default=dict, help_text="Raw gateway payment details")),
                ("failure_reason", models.TextField(blank=True, help_text="Reason reported when the payment failed", null=True)),
                ("initiated_at", models.DateTimeField(default=django.utils.timezone.now, help_text="When the payment was initiated")),
                ("expires_at", models.DateTimeField(help_text="When a pending payment expires")),
                ("completed_at", models.DateTimeField(blank=True, help_text="When the payment was completed", null=True)),
                ("user", models.ForeignKey(help_text="User making the payment", on_delete=django.db.models.deletion.PROTECT, related_name="payment_transactions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Payment Transaction",
                "verbose_name_plural": "Payment Transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["reference_type", "reference_id"], name="txn_reference_idx"),
                    models.Index(fields=["user", "status"], name="txn_user_status_idx"),
                    models.Index(fields=["status", "expires_at"], name="txn_status_expiry_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("provider_order_id__isnull", False)), fields=("provider", "provider_order_id"), name="unique_provider_order"),
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payment_transaction_amount_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentWebhook",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("provider", models.CharField(db_index=True, help_text="Gateway that sent the callback", max_length=20)),
                ("event_type", models.CharField(blank=True, db_index=True, default="", help_text="Gateway event type", max_length=100)),
                ("provider_event_id", models.CharField(blank=True, default="", help_text="Gateway event ID", max_length=255)),
                ("raw_payload", models.TextField(help_text="Exact request body as received")),
                ("payload", models.JSONField(blank=True, default=dict, help_text="Parsed request body")),
                ("signature", models.TextField(blank=True, default="", help_text="Signature header sent with the callback")),
                ("is_signature_valid", models.BooleanField(blank=True, help_text="Result of signature verification (null until checked)", null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("RECEIVED", "Received"),
                            ("VERIFIED", "Verified"),
                            ("PROCESSED", "Processed"),
                            ("FAILED", "Failed"),
                        ],
                        db_index=True,
                        default="RECEIVED",
                        help_text="Processing status",
                        max_length=20,
                    ),
                ),
                (
                    "outcome",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("completed", "Completed transaction"),
                            ("already_completed", "Already completed"),
                            ("failed", "Transaction failed"),
                            ("ignored", "Ignored"),
                        ],
                        default="",
                        help_text="What processing did to the ledger",
                        max_length=20,
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, help_text="When processing finished", null=True)),
                ("error_message", models.TextField(blank=True, help_text="Error details if processing failed", null=True)),
                ("transaction", models.ForeignKey(blank=True, help_text="Transaction this callback resolved to", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="webhooks", to="payments.paymenttransaction")),
            ],
            options={
                "verbose_name": "Payment Webhook",
                "verbose_name_plural": "Payment Webhooks",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
                    models.Index(fields=["provider", "event_type"], name="webhook_provider_event_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentInvoice",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("invoice_number", models.CharField(help_text="Human-readable number (INV-YYYYMMDD-XXXXXX)", max_length=32, unique=True)),
                ("invoice_data", models.JSONField(default=dict, help_text="Invoice document")),
                ("status", models.CharField(choices=[("GENERATED", "Generated"), ("EMAILED", "Emailed")], default="GENERATED", help_text="Invoice delivery status", max_length=20)),
                ("pdf_url", models.CharField(blank=True, default="", help_text="Location of the rendered document", max_length=500)),
                ("pdf_generated_at", models.DateTimeField(blank=True, help_text="When the document was rendered", null=True)),
                ("email_sent_to", models.EmailField(blank=True, default="", help_text="Address the invoice was last emailed to", max_length=254)),
                ("email_sent_at", models.DateTimeField(blank=True, help_text="When the invoice was last emailed", null=True)),
                ("email_resend_count", models.PositiveIntegerField(default=0, help_text="Number of times the invoice was re-sent")),
                ("transaction", models.OneToOneField(help_text="Transaction this invoice is for", on_delete=django.db.models.deletion.PROTECT, related_name="invoice", to="payments.paymenttransaction")),
            ],
            options={
                "verbose_name": "Payment Invoice",
                "verbose_name_plural": "Payment Invoices",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ActivityLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("action", models.CharField(db_index=True, help_text="Action key", max_length=64)),
                ("entity_type", models.CharField(help_text="Kind of record the action concerns", max_length=64)),
                ("entity_id", models.CharField(help_text="Identifier of the record", max_length=64)),
                ("details", models.JSONField(blank=True, default=dict, help_text="Structured context")),
                ("user", models.ForeignKey(blank=True, help_text="User the action was performed for", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="activity_logs", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id"], name="activity_entity_idx"),
                ],
            },
        ),
    ]
