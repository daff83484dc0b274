# Generated manually - Initial subscription models

from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


BILLING_CYCLE_CHOICES = [("MONTHLY", "Monthly"), ("YEARLY", "Yearly")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SubscriptionPlan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("name", models.CharField(help_text="Plan name", max_length=100)),
                ("code", models.SlugField(help_text="Stable plan identifier", unique=True)),
                ("monthly_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Price per month", max_digits=10)),
                ("yearly_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Price per year", max_digits=10)),
                ("is_active", models.BooleanField(default=True, help_text="Whether the plan can be purchased")),
            ],
            options={
                "ordering": ["monthly_price"],
            },
        ),
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("name", models.CharField(help_text="Organization name", max_length=200)),
                ("owner", models.ForeignKey(help_text="User who administers and pays for the organization", on_delete=django.db.models.deletion.CASCADE, related_name="organizations", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="OrganizationSubscription",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("billing_cycle", models.CharField(choices=BILLING_CYCLE_CHOICES, default="YEARLY", help_text="Billing cycle", max_length=10)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("expired", "Expired"), ("cancelled", "Cancelled")],
                        db_index=True,
                        default="active",
                        help_text="Subscription status",
                        max_length=20,
                    ),
                ),
                ("start_date", models.DateTimeField(help_text="Start of the current period")),
                ("end_date", models.DateTimeField(help_text="End of the current period")),
                ("organization", models.ForeignKey(help_text="Subscribing organization", on_delete=django.db.models.deletion.CASCADE, related_name="subscriptions", to="subscriptions.organization")),
                ("plan", models.ForeignKey(help_text="Subscribed plan", on_delete=django.db.models.deletion.PROTECT, related_name="subscriptions", to="subscriptions.subscriptionplan")),
            ],
            options={
                "ordering": ["-start_date"],
            },
        ),
        migrations.CreateModel(
            name="SubscriptionPaymentRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("request_type", models.CharField(choices=[("RENEWAL", "Renewal"), ("PLAN_UPGRADE", "Plan Upgrade")], help_text="Renewal or upgrade", max_length=20)),
                ("billing_cycle", models.CharField(choices=BILLING_CYCLE_CHOICES, default="YEARLY", help_text="Billing cycle of the requested period", max_length=10)),
                ("amount", models.DecimalField(decimal_places=2, help_text="Amount to charge", max_digits=10)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("paid", "Paid"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Approval/payment status",
                        max_length=20,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, help_text="When the request was paid", null=True)),
                ("organization", models.ForeignKey(help_text="Organization being charged", on_delete=django.db.models.deletion.CASCADE, related_name="payment_requests", to="subscriptions.organization")),
                ("requested_plan", models.ForeignKey(help_text="Plan after renewal/upgrade", on_delete=django.db.models.deletion.PROTECT, related_name="payment_requests", to="subscriptions.subscriptionplan")),
                ("subscription", models.ForeignKey(blank=True, help_text="Subscription being renewed or upgraded", null=True, on_delete=django.db.models.deletion.CASCADE, related_name="payment_requests", to="subscriptions.organizationsubscription")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
