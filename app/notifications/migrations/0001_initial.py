# Generated manually - Initial notification model

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("notification_type", models.CharField(db_index=True, help_text="Notification type key", max_length=50)),
                ("title", models.CharField(help_text="Notification title", max_length=200)),
                ("body", models.TextField(help_text="Notification body")),
                ("data", models.JSONField(blank=True, default=dict, help_text="Structured payload for clients")),
                ("is_read", models.BooleanField(default=False, help_text="Whether the recipient has read the notification")),
                ("idempotency_key", models.CharField(blank=True, help_text="Key preventing duplicate notifications", max_length=255, null=True, unique=True)),
                (
                    "email_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("sent", "Sent"), ("failed", "Failed"), ("skipped", "Skipped")],
                        default="pending",
                        help_text="Email delivery status",
                        max_length=20,
                    ),
                ),
                ("email_sent_at", models.DateTimeField(blank=True, help_text="When the email was sent", null=True)),
                ("email_failure_reason", models.TextField(blank=True, default="", help_text="Last email failure reason")),
                ("recipient", models.ForeignKey(help_text="User who receives the notification", on_delete=django.db.models.deletion.CASCADE, related_name="notifications", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx")],
            },
        ),
    ]
